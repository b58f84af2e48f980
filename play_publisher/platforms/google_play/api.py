"""Google Play Developer Publishing API helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping
import urllib.parse

import requests

from play_publisher.core.errors import NetworkError
from play_publisher.platforms.base import MIME_TYPE_OCTET_STREAM, ArtifactKind
from play_publisher.settings import ApiSettings, HttpSettings
from play_publisher.utils.file_helper import read_bytes
from play_publisher.utils.logging import get_logger

LOGGER = get_logger(__name__)


class GooglePlayApiError(NetworkError):
    """Raised when Publishing API calls fail."""


def _quote(value: str | int) -> str:
    return urllib.parse.quote(str(value), safe="")


class GooglePlayApiClient:
    """Minimal client for the ``androidpublisher`` v3 edits endpoints.

    ``session`` is expected to attach the bearer token itself, which is what
    ``google.auth.transport.requests.AuthorizedSession`` does.
    """

    def __init__(
        self,
        session: requests.Session,
        *,
        http: HttpSettings | None = None,
        api: ApiSettings | None = None,
        application_name: str | None = None,
    ) -> None:
        self._session = session
        self._http = http or HttpSettings()
        self._api = api or ApiSettings()
        self._application_name = application_name

    def insert_edit(self, package_name: str) -> str:
        data = self._request(
            "POST",
            self._edits_url(package_name),
            action="edits.insert",
            json_body={},
        )
        return str(self._require(data, "id", action="edits.insert"))

    def upload_apk(self, package_name: str, edit_id: str, path: Path) -> int:
        return self._upload_artifact(package_name, edit_id, path, ArtifactKind.APK)

    def upload_bundle(self, package_name: str, edit_id: str, path: Path) -> int:
        return self._upload_artifact(package_name, edit_id, path, ArtifactKind.BUNDLE)

    def upload_deobfuscation_file(
        self,
        package_name: str,
        edit_id: str,
        version_code: int,
        path: Path,
        file_type: str = "proguard",
    ) -> dict[str, Any]:
        url = (
            f"{self._edit_url(package_name, edit_id, upload=True)}"
            f"/apks/{_quote(version_code)}/deobfuscationFiles/{_quote(file_type)}"
        )
        return self._upload(url, path, MIME_TYPE_OCTET_STREAM, action="edits.deobfuscationfiles.upload")

    def update_track(
        self,
        package_name: str,
        edit_id: str,
        track: str,
        body: Mapping[str, Any],
    ) -> dict[str, Any]:
        url = f"{self._edit_url(package_name, edit_id)}/tracks/{_quote(track)}"
        return self._request("PUT", url, action="edits.tracks.update", json_body=dict(body))

    def commit_edit(self, package_name: str, edit_id: str) -> str:
        url = f"{self._edit_url(package_name, edit_id)}:commit"
        data = self._request("POST", url, action="edits.commit")
        return str(data.get("id") or edit_id)

    def _upload_artifact(
        self, package_name: str, edit_id: str, path: Path, kind: ArtifactKind
    ) -> int:
        collection = "apks" if kind is ArtifactKind.APK else "bundles"
        action = f"edits.{collection}.upload"
        url = f"{self._edit_url(package_name, edit_id, upload=True)}/{collection}"
        data = self._upload(url, path, kind.mime_type, action=action)
        raw = self._require(data, "versionCode", action=action)
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise GooglePlayApiError(
                "versionCode has an unexpected format",
                details={"action": action, "versionCode": raw},
            ) from exc

    def _upload(self, url: str, path: Path, mime_type: str, *, action: str) -> dict[str, Any]:
        # AuthorizedSession replays ``data`` on the request it retries after a 401.
        try:
            payload = read_bytes(path)
        except OSError as exc:
            raise GooglePlayApiError(
                "Unable to read upload file",
                details={"action": action, "path": str(path), "reason": str(exc)},
            ) from exc
        return self._request(
            "POST",
            url,
            action=action,
            params={"uploadType": "media"},
            data=payload,
            content_type=mime_type,
        )

    def _request(
        self,
        method: str,
        url: str,
        *,
        action: str,
        json_body: Mapping[str, Any] | None = None,
        data: Any = None,
        params: Mapping[str, str] | None = None,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        headers: dict[str, str] = {}
        if self._application_name:
            headers["User-Agent"] = self._application_name
        if content_type:
            headers["Content-Type"] = content_type

        LOGGER.debug(
            "Publishing API request",
            extra={"event": "api.request", "action": action, "method": method, "url": url},
        )
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json_body,
                data=data,
                headers=headers,
                timeout=self._http.timeout,
            )
        except requests.RequestException as exc:
            raise GooglePlayApiError(
                "Unable to reach the Publishing API",
                details={"action": action, "reason": str(exc)},
            ) from exc

        if not response.ok:
            raise GooglePlayApiError(
                "Publishing API rejected the request",
                details={
                    "action": action,
                    "status": response.status_code,
                    "error": _error_message(response),
                },
            )

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise GooglePlayApiError(
                "Failed to parse Publishing API response",
                details={"action": action, "body": response.text[:200]},
            ) from exc
        if not isinstance(payload, dict):
            raise GooglePlayApiError(
                "Publishing API response is not an object",
                details={"action": action, "body": response.text[:200]},
            )
        return payload

    def _edits_url(self, package_name: str, *, upload: bool = False) -> str:
        root = self._api.upload_url if upload else self._api.base_url
        return f"{root}/applications/{_quote(package_name)}/edits"

    def _edit_url(self, package_name: str, edit_id: str, *, upload: bool = False) -> str:
        return f"{self._edits_url(package_name, upload=upload)}/{_quote(edit_id)}"

    @staticmethod
    def _require(data: Mapping[str, Any], key: str, *, action: str) -> Any:
        value = data.get(key)
        if value in (None, ""):
            raise GooglePlayApiError(
                f"Response is missing the '{key}' field",
                details={"action": action, "response": dict(data)},
            )
        return value


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.text[:200]
