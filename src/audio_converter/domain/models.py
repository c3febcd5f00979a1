"""Domain models for the audio conversion pipeline."""

import os
from enum import Enum
from typing import Literal

from pydantic import BaseModel


class UploadedAudio(BaseModel, frozen=True):
    """An audio file received from a client, before it touches the disk."""

    filename: str | None
    content_type: str | None = None
    data: bytes = b""

    @property
    def extension(self) -> str:
        """Lower-cased extension of the declared filename, e.g. '.mp3'."""
        return os.path.splitext(self.filename or "")[1].lower()


class ToolInvocationResult(BaseModel, frozen=True):
    """Outcome of a single external tool run."""

    executable: str
    args: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str
    duration_seconds: float


class PipelineStage(str, Enum):
    VALIDATION = "validation"
    TRANSCODE = "transcode"
    TRANSCRIBE = "transcribe"
    PERSISTENCE = "persistence"


class PipelineState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    TRANSCODED = "transcoded"
    TRANSCRIBED = "transcribed"
    PERSISTED = "persisted"
    COMPLETED = "completed"
    FAILED = "failed"


class FailureKind(str, Enum):
    INVALID_UPLOAD = "invalid_upload"
    UPLOAD_TOO_LARGE = "upload_too_large"
    TOOL_UNAVAILABLE = "tool_unavailable"
    TOOL_FAILED = "tool_failed"
    TOOL_TIMEOUT = "tool_timeout"
    PERSISTENCE_UNAVAILABLE = "persistence_unavailable"


class ConvertedAudio(BaseModel, frozen=True):
    """Waveform bytes produced by the transcoder."""

    outcome: Literal["audio"] = "audio"
    request_id: str
    record_id: str | None = None
    data: bytes
    media_type: str = "audio/wav"
    filename: str


class Transcript(BaseModel, frozen=True):
    """Plain-text transcript produced by the speech recognizer."""

    outcome: Literal["transcript"] = "transcript"
    request_id: str
    record_id: str | None = None
    text: str


class PipelineFailure(BaseModel, frozen=True):
    """A pipeline run that stopped at a given stage."""

    outcome: Literal["failure"] = "failure"
    request_id: str | None = None
    stage: PipelineStage
    kind: FailureKind
    cause: str


PipelineResult = ConvertedAudio | Transcript | PipelineFailure
