"""Response models for the audio-converter API."""

from pydantic import BaseModel


class TranscriptResponse(BaseModel):
    """Response returned when transcription is enabled."""

    transcript: str


class ProblemDetail(BaseModel):
    """RFC 9457 style problem document for server-side failures."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    stage: str | None = None
    kind: str | None = None


class HealthResponse(BaseModel):
    status: str
    transcription_enabled: bool
