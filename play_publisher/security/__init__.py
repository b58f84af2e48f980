"""Security utilities package."""

from __future__ import annotations

from .credential_provider import (
    ChainedSecretProvider,
    EnvSecretProvider,
    MappingSecretProvider,
    SecretNotFoundError,
    SecretProvider,
)
from .service_account import KeyFormat, KeyMaterial, ServiceAccountCredentialProvider

__all__ = [
    "ChainedSecretProvider",
    "EnvSecretProvider",
    "KeyFormat",
    "KeyMaterial",
    "MappingSecretProvider",
    "SecretNotFoundError",
    "SecretProvider",
    "ServiceAccountCredentialProvider",
]
