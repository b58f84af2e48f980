"""Tests for the command-line entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from play_publisher.app import cli
from play_publisher.core.errors import AuthenticationError
from play_publisher.services import PublishingService
from play_publisher.settings import loader

from test_publish_session import StubApi, StubCredentialProvider


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.delenv(loader.CONFIG_ENV_VAR, raising=False)
    monkeypatch.delenv("PLAY_PUBLISHER_JSON_KEY", raising=False)
    monkeypatch.delenv("PLAY_PUBLISHER_SERVICE_ACCOUNT_EMAIL", raising=False)
    monkeypatch.setattr(loader, "program_dir", lambda: tmp_path)
    (tmp_path / "app-release.apk").write_bytes(b"apk")
    (tmp_path / "key.json").write_text("{}", encoding="utf-8")
    return tmp_path


class ServiceSpy:
    def __init__(self, monkeypatch: pytest.MonkeyPatch, **stub_options: Any) -> None:
        self.api = StubApi(**stub_options)
        self.provider = StubCredentialProvider()
        self.built = 0
        monkeypatch.setattr(cli, "_build_service", self._build)

    def _build(self, config: Any, *, dry_run: bool) -> PublishingService:
        self.built += 1
        return PublishingService(
            self.provider, lambda creds, request: self.api, dry_run=dry_run  # type: ignore[arg-type]
        )


def _argv(root: Path, *extra: str) -> list[str]:
    return [
        "-n",
        "Example-App/1.0",
        "-p",
        "com.example.app",
        "-k",
        "key.json",
        "-apk",
        "app-release.apk",
        "--working-dir",
        str(root),
        "--log-plain",
        *extra,
    ]


def test_help_exits_zero(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["-help"])
    assert excinfo.value.code == 0
    assert "-packageName" in capsys.readouterr().out


def test_missing_required_parameter_exits_one(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["-n", "Example"])
    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "error" in err
    assert "usage" in err


def test_publish_to_internal_track(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    spy = ServiceSpy(monkeypatch)

    code = cli.main(_argv(workspace, "-t", "internal"))

    assert code == 0
    assert spy.api.names == ["insert_edit", "upload_apk", "update_track", "commit_edit"]
    assert spy.provider.materials[0].source == str(workspace / "key.json")


def test_tracks_accept_space_and_comma_lists(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    spy = ServiceSpy(monkeypatch)

    code = cli.main(_argv(workspace, "-t", "alpha", "beta,qa", "-fraction", "0.3"))

    assert code == 0
    assert set(spy.api.track_bodies()) == {"alpha", "beta", "qa"}


def test_rollout_without_fraction_makes_no_remote_calls(
    workspace: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    spy = ServiceSpy(monkeypatch)

    code = cli.main(_argv(workspace, "-t", "rollout"))

    assert code == 1
    assert spy.built == 0
    assert spy.api.calls == []


def test_rollout_with_fraction(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    spy = ServiceSpy(monkeypatch)

    code = cli.main(_argv(workspace, "-t", "rollout", "-fraction", "0.1"))

    assert code == 0
    release = spy.api.track_bodies()["rollout"]["releases"][0]
    assert release["status"] == "inProgress"
    assert release["userFraction"] == pytest.approx(0.1)


def test_missing_mapping_file_makes_no_remote_calls(
    workspace: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    spy = ServiceSpy(monkeypatch)

    code = cli.main(_argv(workspace, "-t", "internal", "-df", "missing-mapping.txt"))

    assert code == 1
    assert spy.api.calls == []
    assert "Mapping" in capsys.readouterr().err


def test_unsupported_artifact_exits_one(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    spy = ServiceSpy(monkeypatch)
    (workspace / "app.zip").write_bytes(b"zip")
    argv = _argv(workspace, "-t", "internal")
    argv[argv.index("app-release.apk")] = "app.zip"

    assert cli.main(argv) == 1
    assert spy.api.calls == []


def test_key_falls_back_to_environment(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    spy = ServiceSpy(monkeypatch)
    monkeypatch.setenv("PLAY_PUBLISHER_JSON_KEY", '{"type": "service_account"}')
    argv = _argv(workspace, "-t", "internal")
    del argv[4:6]

    assert cli.main(argv) == 0
    assert spy.provider.materials[0].source == "<inline>"


def test_missing_key_exits_one(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    spy = ServiceSpy(monkeypatch)
    argv = _argv(workspace, "-t", "internal")
    del argv[4:6]

    assert cli.main(argv) == 1
    assert spy.built == 0


def test_remote_failure_exits_two(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    spy = ServiceSpy(monkeypatch, fail_on="upload_apk")

    code = cli.main(_argv(workspace, "-t", "internal"))

    assert code == 2
    assert "commit_edit" not in spy.api.names


def test_authentication_failure_exits_two(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    spy = ServiceSpy(monkeypatch)
    spy.provider.error = AuthenticationError("token endpoint unreachable")

    assert cli.main(_argv(workspace, "-t", "internal")) == 2
    assert spy.api.calls == []


def test_dry_run_does_not_commit(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    spy = ServiceSpy(monkeypatch)

    assert cli.main(_argv(workspace, "-t", "beta", "--dry-run")) == 0
    assert "commit_edit" not in spy.api.names


def test_invalid_config_exits_one(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ServiceSpy(monkeypatch)
    argv = _argv(workspace, "-t", "internal", "--config", str(workspace / "absent.toml"))

    assert cli.main(argv) == 1


def test_release_notes_in_legacy_encoding_are_published(
    workspace: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    spy = ServiceSpy(monkeypatch)
    (workspace / "fr.txt").write_bytes(b"Corrections d'\xe9t\xe9")

    code = cli.main(_argv(workspace, "-t", "beta", "-l", "fr-FR::fr.txt"))

    assert code == 0
    notes = spy.api.track_bodies()["beta"]["releases"][0]["releaseNotes"]
    assert notes == [{"language": "fr-FR", "text": "Corrections d'�t�"}]


@pytest.mark.parametrize(
    "content",
    ['[logging]\nlevel = "verbose"\n', "http = 5\n", '[http]\nread_timeout = "slow"\n'],
)
def test_bad_config_values_exit_one(
    workspace: Path, monkeypatch: pytest.MonkeyPatch, content: str
) -> None:
    spy = ServiceSpy(monkeypatch)
    config = workspace / "bad.toml"
    config.write_text(content, encoding="utf-8")

    assert cli.main(_argv(workspace, "-t", "internal", "--config", str(config))) == 1
    assert spy.built == 0
