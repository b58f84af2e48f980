"""Base contracts for store publishing backends."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Protocol

MIME_TYPE_APK = "application/vnd.android.package-archive"
MIME_TYPE_OCTET_STREAM = "application/octet-stream"


class ArtifactKind(str, Enum):
    """Artifact flavours accepted by the store, keyed by file extension."""

    APK = "apk"
    BUNDLE = "bundle"

    @property
    def mime_type(self) -> str:
        return MIME_TYPE_APK if self is ArtifactKind.APK else MIME_TYPE_OCTET_STREAM

    @classmethod
    def from_path(cls, path: Path) -> "ArtifactKind | None":
        suffix = path.suffix.lower()
        if suffix == ".apk":
            return cls.APK
        if suffix == ".aab":
            return cls.BUNDLE
        return None


@dataclass(frozen=True, slots=True)
class UploadedArtifact:
    """Outcome of the artifact upload step."""

    version_code: int
    kind: ArtifactKind


class PublisherApi(Protocol):
    """Remote calls needed to run one edit session."""

    def insert_edit(self, package_name: str) -> str:
        """Open an edit session and return its ``editId``."""

    def upload_apk(self, package_name: str, edit_id: str, path: Path) -> int:
        """Upload an APK and return its version code."""

    def upload_bundle(self, package_name: str, edit_id: str, path: Path) -> int:
        """Upload an App Bundle and return its version code."""

    def upload_deobfuscation_file(
        self,
        package_name: str,
        edit_id: str,
        version_code: int,
        path: Path,
        file_type: str = "proguard",
    ) -> dict[str, Any]:
        """Attach a deobfuscation file to ``version_code``."""

    def update_track(
        self,
        package_name: str,
        edit_id: str,
        track: str,
        body: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Replace the releases of ``track`` within the edit."""

    def commit_edit(self, package_name: str, edit_id: str) -> str:
        """Commit the edit and return the committed id."""
