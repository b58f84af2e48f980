"""Validation of operator input into a :class:`PublishRequest`.

Everything here runs before any network call. Each helper raises
:class:`ArgumentError` (or :class:`UnsupportedArtifactError`) on the first rule
it finds violated.
"""

from __future__ import annotations

from pathlib import Path
import re
from typing import Iterable

from play_publisher.core.errors import ArgumentError, UnsupportedArtifactError
from play_publisher.platforms import ArtifactKind
from play_publisher.security.service_account import INLINE_SOURCE, KeyFormat, KeyMaterial
from play_publisher.utils.file_helper import read_bytes, read_text, resolve_path
from play_publisher.utils.logging import get_logger

from .models import TRACK_ROLLOUT, PublishRequest, ReleaseNote

LOGGER = get_logger(__name__)

_LISTING_SEPARATOR = re.compile(r"\s*,\s*")
_PAIR_SEPARATOR = re.compile(r"\s*::\s*")
_TRACK_SEPARATOR = re.compile(r"[,\s]+")
_PKCS12_SUFFIXES = {".p12", ".pfx"}


def resolve_request(
    *,
    application_name: str | None,
    package_name: str | None,
    artifact_path: str | Path | None,
    tracks: Iterable[str] | str | None,
    working_dir: Path,
    mapping_path: str | Path | None = None,
    listings: str | None = None,
    rollout_fraction: str | float | None = None,
) -> PublishRequest:
    """Build a fully validated request from raw operator input."""
    application_name = _require_text(application_name, "Application name cannot be null or empty!")
    package_name = _require_text(package_name, "Package name cannot be null or empty!")
    track_set = parse_tracks(tracks)
    if not track_set:
        raise ArgumentError("Track cannot be null or empty!")

    fraction: float | None = None
    if TRACK_ROLLOUT in track_set:
        fraction = parse_rollout_fraction(rollout_fraction)
    elif rollout_fraction not in (None, ""):
        LOGGER.warning(
            "Rollout fraction ignored because the rollout track was not requested",
            extra={"event": "config.ignored", "fraction": rollout_fraction},
        )

    artifact, kind = resolve_artifact(artifact_path, working_dir)

    mapping: Path | None = None
    if mapping_path not in (None, ""):
        mapping = resolve_path(mapping_path, working_dir)
        if not mapping.is_file():
            raise ArgumentError(
                f"Mapping (deobfuscation) file not found in path: {mapping}",
                details={"path": str(mapping)},
            )

    release_notes = parse_listings(listings, working_dir)

    request = PublishRequest(
        application_name=application_name,
        package_name=package_name,
        artifact_path=artifact,
        artifact_kind=kind,
        tracks=track_set,
        working_dir=working_dir,
        mapping_path=mapping,
        rollout_fraction=fraction,
        release_notes=release_notes,
    )
    LOGGER.info(
        "Publish request validated",
        extra={
            "event": "config.resolved",
            "package": package_name,
            "artifact": str(artifact),
            "kind": kind.value,
            "tracks": sorted(track_set),
            "languages": [note.language for note in release_notes],
        },
    )
    return request


def parse_tracks(values: Iterable[str] | str | None) -> frozenset[str]:
    """Accept repeated values and/or comma-separated names."""
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    names: set[str] = set()
    for value in values:
        names.update(part for part in _TRACK_SEPARATOR.split(value.strip()) if part)
    return frozenset(names)


def parse_rollout_fraction(value: str | float | None) -> float:
    """Parse the rollout fraction; valid values satisfy ``0 <= fraction < 1``."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ArgumentError("Rollout fraction is required for the 'rollout' track")
    try:
        fraction = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError) as exc:
        raise ArgumentError(
            f"Rollout fraction must be a number but set {value!r}",
            details={"fraction": str(value)},
        ) from exc
    if not 0.0 <= fraction < 1.0:
        raise ArgumentError(
            f"User fraction must be in range (0 <= fraction < 1) but set {value}",
            details={"fraction": str(value)},
        )
    return fraction


def resolve_artifact(value: str | Path | None, working_dir: Path) -> tuple[Path, ArtifactKind]:
    if value is None or not str(value).strip():
        raise ArgumentError("Apk/aab path cannot be null or empty!")
    path = resolve_path(str(value).strip(), working_dir)
    if not path.is_file():
        raise ArgumentError(f"Apk file not found in path: {path}", details={"path": str(path)})
    kind = ArtifactKind.from_path(path)
    if kind is None:
        raise UnsupportedArtifactError(
            f"File [{path}] is not apk nor aab file!",
            details={"path": str(path), "suffix": path.suffix},
        )
    return path, kind


def parse_listings(listings: str | None, working_dir: Path) -> tuple[ReleaseNote, ...]:
    """Parse ``lang1::path1,lang2::path2`` into release notes, keeping input order."""
    if listings is None or not listings.strip():
        return ()

    entries = _LISTING_SEPARATOR.split(listings.strip())
    while entries and not entries[-1]:
        entries.pop()

    notes: list[ReleaseNote] = []
    for entry in entries:
        pieces = _PAIR_SEPARATOR.split(entry)
        if len(pieces) != 2:
            raise ArgumentError(f"Wrong recent changes entry: {entry}", details={"entry": entry})
        language, raw_path = pieces
        if not language or not raw_path:
            raise ArgumentError(
                f"Wrong recent changes entry: {entry}, lang = {language}, path = {raw_path}",
                details={"entry": entry},
            )
        path = resolve_path(raw_path, working_dir)
        if not path.is_file():
            raise ArgumentError(
                f'Recent changes file for language "{language}" not found in path: {path}',
                details={"language": language, "path": str(path)},
            )
        try:
            text = read_text(path, errors="replace")
        except OSError as exc:
            raise ArgumentError(
                f'Recent changes file for language "{language}" could not be read: {path}',
                details={"language": language, "path": str(path), "reason": str(exc)},
            ) from exc
        notes.append(ReleaseNote(language=language, text=text))
    return tuple(notes)


def resolve_key_material(
    value: str | None,
    *,
    working_dir: Path,
    service_account_email: str | None = None,
) -> KeyMaterial:
    """Inline JSON when ``value`` starts with ``{``, otherwise a key file path."""
    email = service_account_email.strip() if service_account_email else None
    if value is None or not value.strip():
        raise ArgumentError("Secret json key content cannot be null or empty!")

    stripped = value.strip()
    if stripped.startswith("{"):
        return KeyMaterial(
            format=KeyFormat.JSON,
            content=stripped.encode("utf-8"),
            source=INLINE_SOURCE,
            service_account_email=email,
        )

    path = resolve_path(stripped, working_dir)
    if not path.is_file():
        raise ArgumentError(
            f"Secret json key file not found in path: {path}", details={"path": str(path)}
        )
    key_format = KeyFormat.PKCS12 if path.suffix.lower() in _PKCS12_SUFFIXES else KeyFormat.JSON
    if key_format is KeyFormat.PKCS12 and not email:
        raise ArgumentError(
            "Service account email is required for PKCS12 keys",
            details={"path": str(path)},
        )
    try:
        content = read_bytes(path)
    except OSError as exc:
        raise ArgumentError(
            f"Secret json key file could not be read: {path}",
            details={"path": str(path), "reason": str(exc)},
        ) from exc
    return KeyMaterial(
        format=key_format,
        content=content,
        source=str(path),
        service_account_email=email,
    )


def _require_text(value: str | None, message: str) -> str:
    if value is None or not value.strip():
        raise ArgumentError(message)
    return value.strip()


__all__ = [
    "parse_listings",
    "parse_rollout_fraction",
    "parse_tracks",
    "resolve_artifact",
    "resolve_key_material",
    "resolve_request",
]
