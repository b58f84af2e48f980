"""Filesystem helpers."""

from __future__ import annotations

from pathlib import Path


def resolve_path(value: str | Path, working_dir: Path) -> Path:
    """Absolute path for ``value``; relative values are joined to ``working_dir``."""
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = working_dir / path
    return path.absolute()


def read_text(path: Path, *, encoding: str = "utf-8", errors: str = "strict") -> str:
    """Read ``path`` without translating line endings."""
    with path.open("r", encoding=encoding, errors=errors, newline="") as fp:
        return fp.read()


def read_bytes(path: Path) -> bytes:
    with path.open("rb") as fp:
        return fp.read()
