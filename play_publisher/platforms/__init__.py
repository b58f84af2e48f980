"""Platform integration package."""

from __future__ import annotations

from .base import (
    MIME_TYPE_APK,
    MIME_TYPE_OCTET_STREAM,
    ArtifactKind,
    PublisherApi,
    UploadedArtifact,
)

__all__ = [
    "ArtifactKind",
    "MIME_TYPE_APK",
    "MIME_TYPE_OCTET_STREAM",
    "PublisherApi",
    "UploadedArtifact",
]
