"""Interfaces and basic implementations for secret resolution."""

from __future__ import annotations

from abc import ABC, abstractmethod
from os import environ
from typing import Iterable, Mapping


class SecretNotFoundError(KeyError):
    """Raised when a secret cannot be resolved."""


class SecretProvider(ABC):
    """Abstract secret lookup contract."""

    @abstractmethod
    def get_secret(self, key: str) -> str:
        """Return the secret associated with ``key``."""


class EnvSecretProvider(SecretProvider):
    """Reads secrets from process environment variables.

    ``json_key`` with prefix ``PLAY_PUBLISHER_`` is looked up as ``PLAY_PUBLISHER_JSON_KEY``.
    """

    def __init__(self, prefix: str = "", env: Mapping[str, str] | None = None) -> None:
        self._env = env if env is not None else environ
        self._prefix = prefix

    def get_secret(self, key: str) -> str:
        compound = f"{self._prefix}{key}" if self._prefix else key
        value = self._env.get(compound.upper().replace(".", "_"))
        if not value:
            raise SecretNotFoundError(compound)
        return value


class MappingSecretProvider(SecretProvider):
    """Serves secrets from a plain mapping; empty values count as missing."""

    def __init__(self, mapping: Mapping[str, str | None]) -> None:
        self._mapping = mapping

    def get_secret(self, key: str) -> str:
        value = self._mapping.get(key)
        if not value:
            raise SecretNotFoundError(key)
        return value


class ChainedSecretProvider(SecretProvider):
    """Tries multiple providers until one returns a secret."""

    def __init__(self, providers: Iterable[SecretProvider]) -> None:
        self._providers = tuple(providers)

    def get_secret(self, key: str) -> str:
        for provider in self._providers:
            try:
                return provider.get_secret(key)
            except SecretNotFoundError:
                continue
        raise SecretNotFoundError(key)

    def find_secret(self, key: str) -> str | None:
        """Like :meth:`get_secret` but returns ``None`` when nothing matches."""
        try:
            return self.get_secret(key)
        except SecretNotFoundError:
            return None


__all__ = [
    "ChainedSecretProvider",
    "EnvSecretProvider",
    "MappingSecretProvider",
    "SecretNotFoundError",
    "SecretProvider",
]
