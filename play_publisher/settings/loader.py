"""Helpers for loading configuration and static settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
import sys
import tomllib
from typing import Any

DEFAULT_CONFIG_NAME = "play_publisher.toml"
CONFIG_ENV_VAR = "PLAY_PUBLISHER_CONFIG"

ANDROIDPUBLISHER_SCOPE = "https://www.googleapis.com/auth/androidpublisher"
DEFAULT_BASE_URL = "https://androidpublisher.googleapis.com/androidpublisher/v3"
DEFAULT_UPLOAD_URL = "https://androidpublisher.googleapis.com/upload/androidpublisher/v3"
DEFAULT_P12_PASSWORD = "notasecret"
DEFAULT_TIMEOUT_SECONDS = 3 * 60.0


@dataclass(frozen=True, slots=True)
class HttpSettings:
    connect_timeout: float = DEFAULT_TIMEOUT_SECONDS
    read_timeout: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def timeout(self) -> tuple[float, float]:
        """``(connect, read)`` pair in the form ``requests`` expects."""
        return (self.connect_timeout, self.read_timeout)


@dataclass(frozen=True, slots=True)
class ApiSettings:
    base_url: str = DEFAULT_BASE_URL
    upload_url: str = DEFAULT_UPLOAD_URL
    scope: str = ANDROIDPUBLISHER_SCOPE
    p12_password: str = DEFAULT_P12_PASSWORD
    verify_credentials: bool = True


@dataclass(frozen=True, slots=True)
class LogSettings:
    level: str = "INFO"
    structured: bool = True


@dataclass(frozen=True, slots=True)
class PathSettings:
    working_dir: Path | None = None

    def resolve_working_dir(self, override: str | os.PathLike[str] | None = None) -> Path:
        """Return the base directory for relative operator paths.

        Priority: explicit override, configured ``working_dir``, then the directory
        holding the running program.
        """
        if override:
            return Path(override).expanduser().resolve()
        if self.working_dir is not None:
            return self.working_dir
        return program_dir()


@dataclass(frozen=True, slots=True)
class AppConfig:
    http: HttpSettings = field(default_factory=HttpSettings)
    api: ApiSettings = field(default_factory=ApiSettings)
    logging: LogSettings = field(default_factory=LogSettings)
    paths: PathSettings = field(default_factory=PathSettings)
    source: Path | None = None


def program_dir() -> Path:
    """Directory containing the running program, falling back to the current directory."""
    argv0 = sys.argv[0] if sys.argv and sys.argv[0] else ""
    candidate = Path(argv0)
    if argv0 and candidate.is_file():
        return candidate.resolve().parent
    return Path.cwd()


def _config_path(explicit: str | os.PathLike[str] | None = None) -> tuple[Path, bool]:
    if explicit:
        return Path(explicit).expanduser(), True
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser(), True
    return program_dir() / DEFAULT_CONFIG_NAME, False


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("rb") as fp:
        return tomllib.load(fp)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ValueError(f"[{name}] must be a table, got {type(section).__name__}")
    return section


def _log_level(value: Any) -> str:
    level = str(value).strip().upper()
    if level not in logging.getLevelNamesMapping():
        raise ValueError(f"Unknown logging level: {value!r}")
    return level


def _as_float(section: dict[str, Any], key: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{key} must be a number, got {value!r}")
    return float(value)


def _as_bool(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def load_config(config_path: str | os.PathLike[str] | None = None) -> AppConfig:
    """Load settings from TOML.

    A missing file at the default location yields built-in defaults; a missing file
    that was named explicitly (argument or ``PLAY_PUBLISHER_CONFIG``) raises
    ``FileNotFoundError``.
    """
    path, explicit = _config_path(config_path)
    if not explicit and not path.exists():
        return AppConfig()
    data = _load_toml(path)

    http_section = _section(data, "http")
    api_section = _section(data, "api")
    logging_section = _section(data, "logging")
    paths_section = _section(data, "paths")

    http_settings = HttpSettings(
        connect_timeout=_as_float(http_section, "connect_timeout", DEFAULT_TIMEOUT_SECONDS),
        read_timeout=_as_float(http_section, "read_timeout", DEFAULT_TIMEOUT_SECONDS),
    )

    api_settings = ApiSettings(
        base_url=str(api_section.get("base_url", DEFAULT_BASE_URL)).rstrip("/"),
        upload_url=str(api_section.get("upload_url", DEFAULT_UPLOAD_URL)).rstrip("/"),
        scope=str(api_section.get("scope", ANDROIDPUBLISHER_SCOPE)),
        p12_password=str(api_section.get("p12_password", DEFAULT_P12_PASSWORD)),
        verify_credentials=_as_bool(api_section.get("verify_credentials"), default=True),
    )

    log_settings = LogSettings(
        level=_log_level(logging_section.get("level", "INFO")),
        structured=_as_bool(logging_section.get("structured"), default=True),
    )

    working_dir_value = paths_section.get("working_dir")
    working_dir: Path | None = None
    if working_dir_value:
        candidate = Path(str(working_dir_value)).expanduser()
        working_dir = candidate if candidate.is_absolute() else (path.parent / candidate).resolve()

    return AppConfig(
        http=http_settings,
        api=api_settings,
        logging=log_settings,
        paths=PathSettings(working_dir=working_dir),
        source=path,
    )
