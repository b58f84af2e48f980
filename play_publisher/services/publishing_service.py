"""High-level orchestration for publishing an artifact to Google Play."""

from __future__ import annotations

from typing import Callable

from google.auth.credentials import Credentials
from google.auth.transport.requests import AuthorizedSession

from play_publisher.core.errors import AuthenticationError, PublishError
from play_publisher.core.result import Err, Result
from play_publisher.platforms import PublisherApi
from play_publisher.platforms.google_play import GooglePlayApiClient
from play_publisher.security import KeyMaterial, ServiceAccountCredentialProvider
from play_publisher.settings import AppConfig

from .models import PublishReceipt, PublishRequest
from .publish_session import PublishSession

ApiFactory = Callable[[Credentials, PublishRequest], PublisherApi]


def google_play_api_factory(config: AppConfig) -> ApiFactory:
    """Factory building an authorised Publishing API client per request."""

    def build(credentials: Credentials, request: PublishRequest) -> PublisherApi:
        return GooglePlayApiClient(
            AuthorizedSession(credentials),
            http=config.http,
            api=config.api,
            application_name=request.application_name,
        )

    return build


class PublishingService:
    """Coordinates credential exchange and the publish session."""

    def __init__(
        self,
        credential_provider: ServiceAccountCredentialProvider,
        api_factory: ApiFactory,
        *,
        dry_run: bool = False,
    ) -> None:
        self._credential_provider = credential_provider
        self._api_factory = api_factory
        self._dry_run = dry_run

    @classmethod
    def from_config(cls, config: AppConfig, *, dry_run: bool = False) -> "PublishingService":
        return cls(
            ServiceAccountCredentialProvider.from_settings(config.api),
            google_play_api_factory(config),
            dry_run=dry_run,
        )

    def publish(
        self, request: PublishRequest, key_material: KeyMaterial
    ) -> Result[PublishReceipt, PublishError]:
        """Authenticate, then run every publish step for ``request``."""
        try:
            credentials = self._credential_provider.obtain(key_material)
        except AuthenticationError as exc:
            return Err(exc.with_stage("authenticate"))
        api = self._api_factory(credentials, request)
        return PublishSession(api, dry_run=self._dry_run).run(request)
