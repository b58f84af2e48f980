"""Settings package exports."""

from .loader import (
    ANDROIDPUBLISHER_SCOPE,
    ApiSettings,
    AppConfig,
    HttpSettings,
    LogSettings,
    PathSettings,
    load_config,
    program_dir,
)

__all__ = [
    "ANDROIDPUBLISHER_SCOPE",
    "ApiSettings",
    "AppConfig",
    "HttpSettings",
    "LogSettings",
    "PathSettings",
    "load_config",
    "program_dir",
]
