"""Error hierarchy shared by every publishing stage."""

from __future__ import annotations

from enum import Enum
import json
from typing import Any, ClassVar, Mapping


class ErrorKind(str, Enum):
    ARGUMENT = "argument"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    UNSUPPORTED_ARTIFACT = "unsupported_artifact"


class PublishError(RuntimeError):
    """Base class for every failure that terminates a publish run."""

    kind: ClassVar[ErrorKind] = ErrorKind.NETWORK
    exit_code: ClassVar[int] = 2

    def __init__(
        self,
        message: str,
        *,
        details: Mapping[str, Any] | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message)
        self.details = dict(details or {})
        self.stage = stage

    def with_stage(self, stage: str) -> "PublishError":
        """Tag the error with the step that produced it and return it."""
        self.stage = stage
        return self

    def __str__(self) -> str:
        base = super().__str__()
        if not self.details:
            return base
        try:
            detail_repr = json.dumps(self.details, ensure_ascii=False)
        except TypeError:
            detail_repr = str(self.details)
        return f"{base} | details: {detail_repr}"


class ArgumentError(PublishError):
    """Invalid or missing operator input, detected before any network call."""

    kind = ErrorKind.ARGUMENT
    exit_code = 1


class UnsupportedArtifactError(PublishError):
    """The artifact is neither an APK nor an App Bundle."""

    kind = ErrorKind.UNSUPPORTED_ARTIFACT
    exit_code = 1


class AuthenticationError(PublishError):
    """Service-account key material could not be turned into a credential."""

    kind = ErrorKind.AUTHENTICATION


class NetworkError(PublishError):
    """A remote call failed (transport error, timeout or non-2xx response)."""

    kind = ErrorKind.NETWORK


__all__ = [
    "ArgumentError",
    "AuthenticationError",
    "ErrorKind",
    "NetworkError",
    "PublishError",
    "UnsupportedArtifactError",
]
