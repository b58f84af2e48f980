"""Linear edit-session protocol: open → upload → mapping → tracks → commit."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence, TypeVar

from play_publisher.core.errors import PublishError
from play_publisher.core.result import Err, Ok, Result
from play_publisher.platforms import ArtifactKind, PublisherApi, UploadedArtifact
from play_publisher.utils.logging import get_logger

from .models import PublishReceipt, PublishRequest, TrackAssignment

LOGGER = get_logger(__name__)

T = TypeVar("T")

DEOBFUSCATION_FILE_TYPE = "proguard"


@dataclass(slots=True)
class PublishContext:
    """Mutable state handed from one step to the next."""

    request: PublishRequest
    edit_id: str | None = None
    artifact: UploadedArtifact | None = None
    assigned_tracks: list[str] = field(default_factory=list)
    committed: bool = False


StepOutcome = Result[None, PublishError]


@dataclass(slots=True)
class PublishStep:
    name: str
    handler: Callable[[PublishContext], StepOutcome]


class PublishSession:
    """Runs the publish steps in order and stops at the first failure.

    A failed run leaves the edit uncommitted on the server; it is never deleted.
    """

    def __init__(self, api: PublisherApi, *, dry_run: bool = False) -> None:
        self._api = api
        self._dry_run = dry_run
        self._steps: Sequence[PublishStep] = (
            PublishStep("open_edit", self._open_edit),
            PublishStep("upload_artifact", self._upload_artifact),
            PublishStep("upload_mapping", self._upload_mapping),
            PublishStep("assign_tracks", self._assign_tracks),
            PublishStep("commit_edit", self._commit_edit),
        )

    @property
    def step_names(self) -> tuple[str, ...]:
        return tuple(step.name for step in self._steps)

    def run(self, request: PublishRequest) -> Result[PublishReceipt, PublishError]:
        context = PublishContext(request=request)
        for step in self._steps:
            LOGGER.info(
                "Running publish step: %s",
                step.name,
                extra={"event": "publish.step", "step": step.name, "package": request.package_name},
            )
            outcome = step.handler(context)
            if outcome.is_err():
                error = outcome.unwrap_err()
                LOGGER.error(
                    "Publish step failed: %s",
                    step.name,
                    extra={
                        "event": "publish.failed",
                        "step": step.name,
                        "edit_id": context.edit_id,
                        "error_kind": error.kind.value,
                    },
                )
                return Err(error)

        if context.edit_id is None or context.artifact is None:
            return Err(_missing_state("finish", "an open edit and an uploaded artifact"))
        return Ok(
            PublishReceipt(
                edit_id=context.edit_id,
                artifact=context.artifact,
                tracks=list(context.assigned_tracks),
                committed=context.committed,
            )
        )

    def _open_edit(self, context: PublishContext) -> StepOutcome:
        outcome = _call("open_edit", self._api.insert_edit, context.request.package_name)
        if outcome.is_err():
            return outcome
        context.edit_id = outcome.unwrap()
        LOGGER.info(
            "Created edit session with id: %s",
            context.edit_id,
            extra={"event": "publish.edit_opened", "edit_id": context.edit_id},
        )
        return Ok(None)

    def _upload_artifact(self, context: PublishContext) -> StepOutcome:
        request = context.request
        kind = request.artifact_kind
        upload = self._api.upload_apk if kind is ArtifactKind.APK else self._api.upload_bundle
        outcome = _call(
            "upload_artifact", upload, request.package_name, context.edit_id, request.artifact_path
        )
        if outcome.is_err():
            return outcome
        context.artifact = UploadedArtifact(version_code=outcome.unwrap(), kind=kind)
        LOGGER.info(
            "%s with version code %s has been uploaded",
            "Apk file" if kind is ArtifactKind.APK else "App Bundle",
            context.artifact.version_code,
            extra={"event": "publish.uploaded", "kind": kind.value},
        )
        return Ok(None)

    def _upload_mapping(self, context: PublishContext) -> StepOutcome:
        request = context.request
        if request.mapping_path is None:
            return Ok(None)
        if context.artifact is None:
            return Err(_missing_state("upload_mapping", "an uploaded artifact"))
        outcome = _call(
            "upload_mapping",
            self._api.upload_deobfuscation_file,
            request.package_name,
            context.edit_id,
            context.artifact.version_code,
            request.mapping_path,
            DEOBFUSCATION_FILE_TYPE,
        )
        if outcome.is_err():
            return outcome
        LOGGER.info("Mapping has been uploaded", extra={"event": "publish.mapping_uploaded"})
        return Ok(None)

    def _assign_tracks(self, context: PublishContext) -> StepOutcome:
        request = context.request
        if not request.tracks:
            LOGGER.info(
                "No tracks requested, artifact will not be assigned to any track",
                extra={"event": "publish.tracks_skipped"},
            )
            return Ok(None)
        if context.artifact is None:
            return Err(_missing_state("assign_tracks", "an uploaded artifact"))
        for track in sorted(request.tracks):
            assignment = TrackAssignment.for_request(track, context.artifact.version_code, request)
            outcome = _call(
                "assign_tracks",
                self._api.update_track,
                request.package_name,
                context.edit_id,
                track,
                assignment.to_body(),
            )
            if outcome.is_err():
                return outcome
            context.assigned_tracks.append(track)
            LOGGER.info(
                "Release assigned to the track: %s",
                track,
                extra={"event": "publish.track_assigned", "status": assignment.status},
            )
        return Ok(None)

    def _commit_edit(self, context: PublishContext) -> StepOutcome:
        if self._dry_run:
            LOGGER.warning(
                "Dry run: edit %s left uncommitted",
                context.edit_id,
                extra={"event": "publish.dry_run", "edit_id": context.edit_id},
            )
            return Ok(None)
        outcome = _call(
            "commit_edit", self._api.commit_edit, context.request.package_name, context.edit_id
        )
        if outcome.is_err():
            return outcome
        context.edit_id = outcome.unwrap()
        context.committed = True
        LOGGER.info(
            "App edit with id %s has been committed",
            context.edit_id,
            extra={"event": "publish.committed", "edit_id": context.edit_id},
        )
        return Ok(None)


def _missing_state(stage: str, requirement: str) -> PublishError:
    return PublishError(f"Step {stage} needs {requirement}", stage=stage)


def _call(stage: str, func: Callable[..., T], *args: Any) -> Result[T, PublishError]:
    try:
        return Ok(func(*args))
    except PublishError as exc:
        return Err(exc.with_stage(stage))


__all__ = ["PublishContext", "PublishSession", "PublishStep"]
