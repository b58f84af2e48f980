from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import requests

from play_publisher.core.errors import NetworkError
from play_publisher.platforms import MIME_TYPE_APK, MIME_TYPE_OCTET_STREAM
from play_publisher.platforms.google_play import GooglePlayApiClient, GooglePlayApiError
from play_publisher.settings import HttpSettings

BASE = "https://androidpublisher.googleapis.com/androidpublisher/v3/applications/com.example.app"
UPLOAD = (
    "https://androidpublisher.googleapis.com/upload/androidpublisher/v3/applications/com.example.app"
)


def _response(status: int = 200, payload: Any = None, *, raw: bytes | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = "OK" if status < 400 else "Error"
    response.url = "https://example.invalid"
    if raw is not None:
        response._content = raw
    else:
        response._content = json.dumps(payload if payload is not None else {}).encode("utf-8")
    return response


class FakeSession:
    def __init__(self, *responses: requests.Response, error: Exception | None = None) -> None:
        self._responses = list(responses)
        self._error = error
        self.requests: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        recorded = {"method": method, "url": url, "body": kwargs.get("data"), **kwargs}
        self.requests.append(recorded)
        if self._error is not None:
            raise self._error
        return self._responses.pop(0)


def _client(session: FakeSession, **kwargs: Any) -> GooglePlayApiClient:
    return GooglePlayApiClient(session, application_name="Example-App/1.0", **kwargs)  # type: ignore[arg-type]


def test_insert_edit_posts_and_returns_id() -> None:
    session = FakeSession(_response(payload={"id": "EDIT_1", "expiryTimeSeconds": "1"}))

    assert _client(session).insert_edit("com.example.app") == "EDIT_1"

    sent = session.requests[0]
    assert sent["method"] == "POST"
    assert sent["url"] == f"{BASE}/edits"
    assert sent["json"] == {}
    assert sent["timeout"] == (180.0, 180.0)
    assert sent["headers"]["User-Agent"] == "Example-App/1.0"


def test_upload_apk_streams_file_with_apk_mime(tmp_path: Path) -> None:
    apk = tmp_path / "app.apk"
    apk.write_bytes(b"apk-bytes")
    session = FakeSession(_response(payload={"versionCode": 12, "binary": {}}))

    assert _client(session).upload_apk("com.example.app", "EDIT_1", apk) == 12

    sent = session.requests[0]
    assert sent["url"] == f"{UPLOAD}/edits/EDIT_1/apks"
    assert sent["params"] == {"uploadType": "media"}
    assert sent["headers"]["Content-Type"] == MIME_TYPE_APK
    assert sent["body"] == b"apk-bytes"


def test_upload_bundle_uses_octet_stream(tmp_path: Path) -> None:
    bundle = tmp_path / "app.aab"
    bundle.write_bytes(b"aab-bytes")
    session = FakeSession(_response(payload={"versionCode": "13", "sha256": "x"}))

    assert _client(session).upload_bundle("com.example.app", "EDIT_1", bundle) == 13

    sent = session.requests[0]
    assert sent["url"] == f"{UPLOAD}/edits/EDIT_1/bundles"
    assert sent["headers"]["Content-Type"] == MIME_TYPE_OCTET_STREAM


def test_upload_deobfuscation_file_targets_version_code(tmp_path: Path) -> None:
    mapping = tmp_path / "mapping.txt"
    mapping.write_text("a -> b", encoding="utf-8")
    session = FakeSession(_response(payload={"deobfuscationFile": {"symbolType": "proguard"}}))

    _client(session).upload_deobfuscation_file("com.example.app", "EDIT_1", 12, mapping)

    sent = session.requests[0]
    assert sent["url"] == f"{UPLOAD}/edits/EDIT_1/apks/12/deobfuscationFiles/proguard"
    assert sent["headers"]["Content-Type"] == MIME_TYPE_OCTET_STREAM
    assert sent["body"] == b"a -> b"


def test_update_track_puts_body() -> None:
    body = {"track": "beta", "releases": [{"versionCodes": ["12"], "status": "completed"}]}
    session = FakeSession(_response(payload=body))

    _client(session).update_track("com.example.app", "EDIT_1", "beta", body)

    sent = session.requests[0]
    assert sent["method"] == "PUT"
    assert sent["url"] == f"{BASE}/edits/EDIT_1/tracks/beta"
    assert sent["json"] == body


def test_commit_edit_posts_commit_action() -> None:
    session = FakeSession(_response(payload={"id": "EDIT_1"}))

    assert _client(session).commit_edit("com.example.app", "EDIT_1") == "EDIT_1"
    assert session.requests[0]["url"] == f"{BASE}/edits/EDIT_1:commit"


def test_configured_timeouts_apply_to_every_call() -> None:
    session = FakeSession(_response(payload={"id": "E"}), _response(payload={"id": "E"}))
    client = _client(session, http=HttpSettings(connect_timeout=5, read_timeout=60))

    client.insert_edit("com.example.app")
    client.commit_edit("com.example.app", "E")

    assert [sent["timeout"] for sent in session.requests] == [(5, 60), (5, 60)]


def test_http_error_is_wrapped_with_server_message() -> None:
    payload = {"error": {"code": 403, "message": "The caller does not have permission"}}
    session = FakeSession(_response(403, payload))

    with pytest.raises(GooglePlayApiError) as excinfo:
        _client(session).insert_edit("com.example.app")

    error = excinfo.value
    assert isinstance(error, NetworkError)
    assert error.details["status"] == 403
    assert error.details["error"] == "The caller does not have permission"
    assert error.details["action"] == "edits.insert"


def test_transport_error_is_wrapped() -> None:
    session = FakeSession(error=requests.ConnectTimeout("timed out"))

    with pytest.raises(GooglePlayApiError, match="Unable to reach"):
        _client(session).commit_edit("com.example.app", "EDIT_1")


def test_missing_version_code_is_an_error(tmp_path: Path) -> None:
    apk = tmp_path / "app.apk"
    apk.write_bytes(b"x")
    session = FakeSession(_response(payload={"binary": {}}))

    with pytest.raises(GooglePlayApiError, match="versionCode"):
        _client(session).upload_apk("com.example.app", "EDIT_1", apk)


def test_unparseable_body_is_an_error() -> None:
    session = FakeSession(_response(raw=b"<html>oops</html>"))

    with pytest.raises(GooglePlayApiError, match="parse"):
        _client(session).insert_edit("com.example.app")


class RefreshingSession(FakeSession):
    """Answers the first call with 401 and replays it, as AuthorizedSession does."""

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        response = super().request(method, url, **kwargs)
        if response.status_code == 401:
            return super().request(method, url, **kwargs)
        return response


def test_upload_body_survives_token_refresh_retry(tmp_path: Path) -> None:
    apk = tmp_path / "app.apk"
    apk.write_bytes(b"apk-bytes")
    session = RefreshingSession(_response(401), _response(payload={"versionCode": 12}))

    assert _client(session).upload_apk("com.example.app", "EDIT_1", apk) == 12
    assert [sent["body"] for sent in session.requests] == [b"apk-bytes", b"apk-bytes"]


def test_unreadable_upload_file_is_an_error(tmp_path: Path) -> None:
    session = FakeSession()

    with pytest.raises(GooglePlayApiError, match="Unable to read upload file"):
        _client(session).upload_apk("com.example.app", "EDIT_1", tmp_path / "absent.apk")
    assert session.requests == []
