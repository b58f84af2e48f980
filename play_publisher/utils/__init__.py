"""Utility exports."""

from .file_helper import read_bytes, read_text, resolve_path
from .logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "read_bytes",
    "read_text",
    "resolve_path",
]
