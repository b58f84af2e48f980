"""Core primitives: errors and results."""

from .errors import (
    ArgumentError,
    AuthenticationError,
    ErrorKind,
    NetworkError,
    PublishError,
    UnsupportedArtifactError,
)
from .result import Err, Ok, Result

__all__ = [
    "ArgumentError",
    "AuthenticationError",
    "Err",
    "ErrorKind",
    "NetworkError",
    "Ok",
    "PublishError",
    "Result",
    "UnsupportedArtifactError",
]
