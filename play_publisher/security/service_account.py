"""Service-account credentials for the Publishing API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
import re
from typing import Callable, Iterable

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from google.auth import crypt
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from play_publisher.core.errors import AuthenticationError
from play_publisher.settings import ANDROIDPUBLISHER_SCOPE, ApiSettings
from play_publisher.settings.loader import DEFAULT_P12_PASSWORD
from play_publisher.utils.logging import get_logger

LOGGER = get_logger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
INLINE_SOURCE = "<inline>"
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class KeyFormat(str, Enum):
    JSON = "json"
    PKCS12 = "pkcs12"


@dataclass(frozen=True, slots=True)
class KeyMaterial:
    """Raw service-account key plus where it came from."""

    format: KeyFormat
    content: bytes
    source: str = INLINE_SOURCE
    service_account_email: str | None = None

    def __repr__(self) -> str:
        return (
            f"KeyMaterial(format={self.format.value!r}, source={self.source!r}, "
            f"service_account_email={self.service_account_email!r})"
        )


class ServiceAccountCredentialProvider:
    """Turns key material into scoped ``google-auth`` service-account credentials."""

    def __init__(
        self,
        *,
        scopes: Iterable[str] = (ANDROIDPUBLISHER_SCOPE,),
        p12_password: str = DEFAULT_P12_PASSWORD,
        verify: bool = True,
        request_factory: Callable[[], Request] = Request,
    ) -> None:
        self._scopes = list(scopes)
        self._p12_password = p12_password
        self._verify = verify
        self._request_factory = request_factory

    @classmethod
    def from_settings(cls, settings: ApiSettings) -> "ServiceAccountCredentialProvider":
        return cls(
            scopes=(settings.scope,),
            p12_password=settings.p12_password,
            verify=settings.verify_credentials,
        )

    def obtain(self, material: KeyMaterial) -> service_account.Credentials:
        """Build credentials and, when verification is on, fetch a first token."""
        if material.format is KeyFormat.PKCS12:
            credentials = self._from_pkcs12(material)
        else:
            credentials = self._from_json(material)

        LOGGER.info(
            "Service account credentials loaded",
            extra={
                "event": "auth.loaded",
                "format": material.format.value,
                "source": material.source,
                "service_account": credentials.service_account_email,
            },
        )
        if self._verify:
            self._refresh(credentials, material)
        return credentials

    def _from_json(self, material: KeyMaterial) -> service_account.Credentials:
        try:
            info = json.loads(material.content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise AuthenticationError(
                "Service account key is not valid JSON",
                details={"source": material.source},
            ) from exc
        if not isinstance(info, dict):
            raise AuthenticationError(
                "Service account key must be a JSON object",
                details={"source": material.source},
            )

        expected_email = material.service_account_email
        if expected_email and info.get("client_email") != expected_email:
            raise AuthenticationError(
                "Service account email does not match the key",
                details={"expected": expected_email, "actual": info.get("client_email")},
            )

        try:
            return service_account.Credentials.from_service_account_info(
                info, scopes=self._scopes
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthenticationError(
                "Service account key is malformed",
                details={"source": material.source, "reason": str(exc)},
            ) from exc

    def _from_pkcs12(self, material: KeyMaterial) -> service_account.Credentials:
        email = (material.service_account_email or "").strip()
        if not _EMAIL_PATTERN.match(email):
            raise AuthenticationError(
                "PKCS12 keys require a valid service account email",
                details={"source": material.source, "email": email or None},
            )
        try:
            private_key, _, _ = pkcs12.load_key_and_certificates(
                material.content, self._p12_password.encode("utf-8")
            )
        except (ValueError, TypeError) as exc:
            raise AuthenticationError(
                "Unable to decrypt PKCS12 key",
                details={"source": material.source, "reason": str(exc)},
            ) from exc
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise AuthenticationError(
                "PKCS12 bundle contains no RSA private key",
                details={"source": material.source},
            )

        pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        signer = crypt.RSASigner.from_string(pem)
        return service_account.Credentials(
            signer,
            service_account_email=email,
            token_uri=GOOGLE_TOKEN_URI,
            scopes=self._scopes,
        )

    def _refresh(self, credentials: service_account.Credentials, material: KeyMaterial) -> None:
        try:
            credentials.refresh(self._request_factory())
        except GoogleAuthError as exc:
            raise AuthenticationError(
                "Token exchange with Google failed",
                details={
                    "source": material.source,
                    "service_account": credentials.service_account_email,
                    "reason": str(exc),
                },
            ) from exc


__all__ = [
    "GOOGLE_TOKEN_URI",
    "INLINE_SOURCE",
    "KeyFormat",
    "KeyMaterial",
    "ServiceAccountCredentialProvider",
]
