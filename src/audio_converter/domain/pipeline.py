"""Core business logic for converting and transcribing uploads."""

import asyncio
import logging
import os
import uuid
from datetime import datetime, timezone

from audio_converter.config import UploadConfig
from audio_converter.exceptions import (
    PersistenceUnavailableError,
    ToolError,
    ToolFailedError,
    ToolTimeoutError,
    ToolUnavailableError,
    UploadTooLargeError,
    UploadValidationError,
)
from audio_converter.infrastructure.interfaces import (
    AudioTranscoder,
    MetadataStore,
    SpeechRecognizer,
)

from .models import (
    ConvertedAudio,
    FailureKind,
    PipelineFailure,
    PipelineResult,
    PipelineStage,
    PipelineState,
    Transcript,
    UploadedAudio,
)
from .workspace import Workspace, WorkspaceManager

logger = logging.getLogger(__name__)


def _failure_kind(error: ToolError) -> FailureKind:
    if isinstance(error, ToolUnavailableError):
        return FailureKind.TOOL_UNAVAILABLE
    if isinstance(error, ToolTimeoutError):
        return FailureKind.TOOL_TIMEOUT
    return FailureKind.TOOL_FAILED


class ConversionPipeline:
    """
    Drives a single upload through validation, transcoding, optional
    transcription and metadata recording.

    One instance handles exactly one request. States advance
    received -> validated -> transcoded -> [transcribed] -> persisted ->
    completed, and any stage may move to failed. The request workspace is
    released before the result is returned, whatever the outcome.
    """

    def __init__(
        self,
        workspaces: WorkspaceManager,
        transcoder: AudioTranscoder,
        store: MetadataStore,
        upload_config: UploadConfig,
        recognizer: SpeechRecognizer | None = None,
        media_type: str = "audio/wav",
    ):
        self._workspaces = workspaces
        self._transcoder = transcoder
        self._store = store
        self._upload_config = upload_config
        self._recognizer = recognizer
        self._media_type = media_type

        self.request_id = uuid.uuid4().hex
        self.state = PipelineState.RECEIVED
        self.history: list[PipelineState] = [PipelineState.RECEIVED]

    @property
    def transcription_enabled(self) -> bool:
        return self._recognizer is not None

    async def run(self, upload: UploadedAudio | None) -> PipelineResult:
        """
        Runs the pipeline to a terminal state.

        Args:
            upload: The received file, or None when the request carried none.

        Returns:
            ConvertedAudio or Transcript on success, PipelineFailure when a
            stage rejected the upload or an external tool failed.

        Raises:
            RuntimeError: If the instance was already run.
        """
        if self.state is not PipelineState.RECEIVED:
            raise RuntimeError("A pipeline instance can only run once")

        try:
            return await self._run(upload)
        except BaseException:
            # Unexpected errors and cancellation still end in a terminal state.
            if self.state is not PipelineState.FAILED:
                self._advance(PipelineState.FAILED)
            raise

    async def _run(self, upload: UploadedAudio | None) -> PipelineResult:
        try:
            upload = self.validate(upload)
        except UploadValidationError as e:
            kind = (
                FailureKind.UPLOAD_TOO_LARGE
                if isinstance(e, UploadTooLargeError)
                else FailureKind.INVALID_UPLOAD
            )
            return self._fail(PipelineStage.VALIDATION, kind, e.reason)
        self._advance(PipelineState.VALIDATED)

        async with self._workspaces.workspace(
            self.request_id, upload.extension
        ) as workspace:
            try:
                await self._transcode(upload, workspace)
            except ToolError as e:
                return self._fail(PipelineStage.TRANSCODE, _failure_kind(e), str(e))
            self._advance(PipelineState.TRANSCODED)

            if self._recognizer is not None:
                try:
                    text = await self._transcribe(self._recognizer, workspace)
                except ToolError as e:
                    return self._fail(
                        PipelineStage.TRANSCRIBE, _failure_kind(e), str(e)
                    )
                self._advance(PipelineState.TRANSCRIBED)
            else:
                audio_bytes = await asyncio.to_thread(
                    workspace.intermediate_path.read_bytes
                )

            record_id = await self._persist(upload.filename)
            self._advance(PipelineState.PERSISTED)
            download_name = f"{self.request_id}{workspace.intermediate_path.suffix}"

        self._advance(PipelineState.COMPLETED)

        if self._recognizer is not None:
            return Transcript(request_id=self.request_id, record_id=record_id, text=text)
        return ConvertedAudio(
            request_id=self.request_id,
            record_id=record_id,
            data=audio_bytes,
            media_type=self._media_type,
            filename=download_name,
        )

    def validate(self, upload: UploadedAudio | None) -> UploadedAudio:
        """
        Checks an upload against the accepted formats and size limit.

        Raises:
            UploadValidationError: If the upload is missing, has an
                unaccepted extension, or is empty.
            UploadTooLargeError: If the upload exceeds the size limit.
        """
        if upload is None or not upload.filename:
            raise UploadValidationError("No file uploaded")

        accepted = self._upload_config.accepted_extensions
        if upload.extension not in accepted:
            raise UploadValidationError(
                f"Only accepted audio formats allowed: {', '.join(sorted(accepted))}"
            )

        if not upload.data:
            raise UploadValidationError("Uploaded file is empty")

        if len(upload.data) > self._upload_config.max_bytes:
            raise UploadTooLargeError(len(upload.data), self._upload_config.max_bytes)

        return upload

    async def _transcode(self, upload: UploadedAudio, workspace: Workspace) -> None:
        await asyncio.to_thread(workspace.source_path.write_bytes, upload.data)

        result = await self._transcoder.transcode(
            workspace.source_path, workspace.intermediate_path
        )

        # ffmpeg may exit 0 without writing anything for malformed input.
        target = workspace.intermediate_path
        if not target.is_file() or target.stat().st_size == 0:
            raise ToolFailedError(
                os.path.basename(result.executable),
                "no output artifact was produced",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )

    async def _transcribe(
        self, recognizer: SpeechRecognizer, workspace: Workspace
    ) -> str:
        result = await recognizer.transcribe(
            workspace.intermediate_path, workspace.transcript_dir
        )

        transcript_path = recognizer.transcript_path(
            workspace.intermediate_path, workspace.transcript_dir
        )
        if not transcript_path.is_file():
            raise ToolFailedError(
                os.path.basename(result.executable),
                "no transcript was produced",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        raw = await asyncio.to_thread(transcript_path.read_bytes)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ToolFailedError(
                os.path.basename(result.executable),
                "transcript is not valid UTF-8",
                exit_code=result.exit_code,
                stderr=result.stderr,
            ) from e
        return text.strip()

    async def _persist(self, filename: str) -> str | None:
        """Records the conversion. Store failures are logged and absorbed."""
        try:
            return await self._store.record(filename, datetime.now(timezone.utc))
        except PersistenceUnavailableError:
            logger.warning(
                "Conversion metadata not recorded",
                extra={
                    "request_id": self.request_id,
                    "stage": PipelineStage.PERSISTENCE.value,
                    "kind": FailureKind.PERSISTENCE_UNAVAILABLE.value,
                },
            )
            return None

    def _advance(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug(
            "Pipeline state changed",
            extra={"request_id": self.request_id, "state": state.value},
        )

    def _fail(
        self, stage: PipelineStage, kind: FailureKind, cause: str
    ) -> PipelineFailure:
        extra = {
            "request_id": self.request_id,
            "stage": stage.value,
            "kind": kind.value,
            "cause": cause,
        }
        if kind is FailureKind.TOOL_UNAVAILABLE:
            logger.error("External tool unavailable", extra=extra)
        elif kind is FailureKind.TOOL_TIMEOUT:
            logger.warning("External tool timed out", extra=extra)
        elif stage is PipelineStage.VALIDATION:
            logger.info("Upload rejected", extra=extra)
        else:
            logger.warning("External tool failed", extra=extra)

        self._advance(PipelineState.FAILED)
        return PipelineFailure(
            request_id=None if stage is PipelineStage.VALIDATION else self.request_id,
            stage=stage,
            kind=kind,
            cause=cause,
        )
