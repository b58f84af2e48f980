"""Data models for the Google Play publishing workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from play_publisher.platforms import ArtifactKind, UploadedArtifact

TRACK_ROLLOUT = "rollout"
STATUS_COMPLETED = "completed"
STATUS_IN_PROGRESS = "inProgress"


@dataclass(frozen=True, slots=True)
class ReleaseNote:
    """Release notes for one BCP-47 language."""

    language: str
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"language": self.language, "text": self.text}


@dataclass(frozen=True, slots=True)
class PublishRequest:
    """Validated, immutable description of one publish run."""

    application_name: str
    package_name: str
    artifact_path: Path
    artifact_kind: ArtifactKind
    tracks: frozenset[str]
    working_dir: Path
    mapping_path: Path | None = None
    rollout_fraction: float | None = None
    release_notes: tuple[ReleaseNote, ...] = ()


@dataclass(frozen=True, slots=True)
class TrackAssignment:
    """A single-release update for one track."""

    track: str
    version_code: int
    release_notes: tuple[ReleaseNote, ...] = ()
    rollout_fraction: float | None = None

    @classmethod
    def for_request(cls, track: str, version_code: int, request: PublishRequest) -> "TrackAssignment":
        fraction = request.rollout_fraction if track == TRACK_ROLLOUT else None
        return cls(
            track=track,
            version_code=version_code,
            release_notes=request.release_notes,
            rollout_fraction=fraction,
        )

    @property
    def status(self) -> str:
        return STATUS_IN_PROGRESS if self.track == TRACK_ROLLOUT else STATUS_COMPLETED

    def to_body(self) -> dict[str, Any]:
        """Track resource as sent to ``edits.tracks.update``."""
        release: dict[str, Any] = {
            "versionCodes": [str(self.version_code)],
            "status": self.status,
        }
        if self.release_notes:
            release["releaseNotes"] = [note.to_dict() for note in self.release_notes]
        if self.track == TRACK_ROLLOUT:
            release["userFraction"] = self.rollout_fraction
        return {"track": self.track, "releases": [release]}


@dataclass(slots=True)
class PublishReceipt:
    """Outcome of a successful publish run."""

    edit_id: str
    artifact: UploadedArtifact
    tracks: list[str] = field(default_factory=list)
    committed: bool = True
