"""Google Play platform adapters."""

from __future__ import annotations

from .api import GooglePlayApiClient, GooglePlayApiError

__all__ = [
    "GooglePlayApiClient",
    "GooglePlayApiError",
]
