"""Application configuration loaded from environment variables."""

import os
import shlex
import tempfile
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, computed_field


class DatabaseConfig(BaseModel, frozen=True):
    """Immutable metadata store connection configuration."""

    host: str = "postgres"
    port: str = "5432"
    user: str = ""
    password: str = ""
    database: str = "audio_converter"
    url_override: str | None = None

    @computed_field
    @property
    def url(self) -> str:
        """Returns the full connection URL (PostgreSQL unless overridden)."""
        if self.url_override:
            return self.url_override
        return (
            f"postgresql+psycopg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class TranscoderConfig(BaseModel, frozen=True):
    """External transcoder (ffmpeg) configuration."""

    executable: str = "ffmpeg"
    timeout_seconds: float = 120.0
    output_extension: str = ".wav"
    output_media_type: str = "audio/wav"


class SpeechRecognitionConfig(BaseModel, frozen=True):
    """External speech-recognition (Whisper CLI) configuration."""

    enabled: bool = False
    executable: str = "whisper"
    extra_args: tuple[str, ...] = ()
    language: str = "en"
    model: str = "base"
    # Both make Whisper write the plain-text <stem>.txt that is read back.
    output_format: Literal["txt", "all"] = "txt"
    timeout_seconds: float = 600.0


class UploadConfig(BaseModel, frozen=True):
    """Accepted upload formats and limits."""

    accepted_extensions: frozenset[str] = frozenset({".mp3"})
    max_bytes: int = 50 * 1024 * 1024


class WorkspaceConfig(BaseModel, frozen=True):
    """Location of per-request temporary workspaces."""

    root: Path = Path(tempfile.gettempdir())
    prefix: str = "audio-converter-"


class ServerConfig(BaseModel, frozen=True):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    disconnect_poll_seconds: float = 0.5


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    database: DatabaseConfig = DatabaseConfig()
    transcoder: TranscoderConfig = TranscoderConfig()
    recognizer: SpeechRecognitionConfig = SpeechRecognitionConfig()
    upload: UploadConfig = UploadConfig()
    workspace: WorkspaceConfig = WorkspaceConfig()
    server: ServerConfig = ServerConfig()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_extensions(name: str, default: str) -> frozenset[str]:
    """Parses a comma separated extension list, normalising to '.ext' form."""
    raw = os.getenv(name, default)
    extensions = set()
    for item in raw.split(","):
        item = item.strip().lower()
        if not item:
            continue
        extensions.add(item if item.startswith(".") else f".{item}")
    return frozenset(extensions)


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        database=DatabaseConfig(
            host=os.getenv("POSTGRES_HOST", "postgres"),
            port=os.getenv("POSTGRES_PORT", "5432"),
            user=os.getenv("POSTGRES_USER", ""),
            password=os.getenv("POSTGRES_PASSWORD", ""),
            database=os.getenv("POSTGRES_DB", "audio_converter"),
            url_override=os.getenv("DATABASE_URL") or None,
        ),
        transcoder=TranscoderConfig(
            executable=os.getenv("TRANSCODER_PATH", "ffmpeg"),
            timeout_seconds=float(os.getenv("TRANSCODER_TIMEOUT_SECONDS", "120")),
        ),
        recognizer=SpeechRecognitionConfig(
            enabled=_env_bool("TRANSCRIPTION_ENABLED", False),
            executable=os.getenv("RECOGNIZER_PATH", "whisper"),
            extra_args=tuple(shlex.split(os.getenv("RECOGNIZER_EXTRA_ARGS", ""))),
            language=os.getenv("RECOGNIZER_LANGUAGE", "en"),
            model=os.getenv("RECOGNIZER_MODEL", "base"),
            output_format=os.getenv("RECOGNIZER_OUTPUT_FORMAT", "txt"),
            timeout_seconds=float(os.getenv("RECOGNIZER_TIMEOUT_SECONDS", "600")),
        ),
        upload=UploadConfig(
            accepted_extensions=_env_extensions("ACCEPTED_EXTENSIONS", ".mp3"),
            max_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024))),
        ),
        workspace=WorkspaceConfig(
            root=Path(os.getenv("WORKSPACE_ROOT", tempfile.gettempdir())),
        ),
        server=ServerConfig(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            disconnect_poll_seconds=float(os.getenv("DISCONNECT_POLL_SECONDS", "0.5")),
        ),
    )
