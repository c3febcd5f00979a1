"""FastAPI dependency injection configuration."""

import logging
import shutil
from typing import Annotated

from fastapi import Depends, Request

from audio_converter.config import AppConfig
from audio_converter.domain import ConversionPipeline, WorkspaceManager
from audio_converter.infrastructure import (
    FFmpegTranscoder,
    SubprocessToolInvoker,
    WhisperRecognizer,
)
from audio_converter.infrastructure.interfaces import (
    AudioTranscoder,
    MetadataStore,
    SpeechRecognizer,
    ToolInvoker,
)
from audio_converter.repositories import ConversionRepository

logger = logging.getLogger(__name__)


def resolve_executable(name: str) -> str:
    """
    Resolves a configured tool name or path to an absolute executable path.

    Unresolvable names are returned unchanged; running them later raises
    ToolUnavailableError, which is reported to the caller as a 503.
    """
    resolved = shutil.which(name)
    if resolved is None:
        logger.warning("Executable not found on PATH", extra={"executable": name})
        return name
    logger.info("Executable resolved", extra={"executable": name, "path": resolved})
    return resolved


class ServiceContainer:
    """
    Long-lived collaborators shared by all requests.

    Created once per process by the application lifespan; start() and
    close() bracket the metadata store connection.
    """

    def __init__(
        self,
        config: AppConfig,
        store: MetadataStore | None = None,
        invoker: ToolInvoker | None = None,
        transcoder: AudioTranscoder | None = None,
        recognizer: SpeechRecognizer | None = None,
    ):
        self.config = config
        self.store = store or ConversionRepository(config.database.url)
        self.invoker = invoker or SubprocessToolInvoker()
        self.workspaces = WorkspaceManager(
            root=config.workspace.root,
            prefix=config.workspace.prefix,
            output_extension=config.transcoder.output_extension,
        )
        self._transcoder = transcoder
        self._recognizer = recognizer

    @property
    def transcoder(self) -> AudioTranscoder:
        return self._transcoder

    @property
    def recognizer(self) -> SpeechRecognizer | None:
        if not self.config.recognizer.enabled:
            return None
        return self._recognizer

    def start(self) -> None:
        """Resolves tool executables and opens the metadata store."""
        if self._transcoder is None:
            transcoder_config = self.config.transcoder.model_copy(
                update={"executable": resolve_executable(self.config.transcoder.executable)}
            )
            self._transcoder = FFmpegTranscoder(self.invoker, transcoder_config)

        if self.config.recognizer.enabled and self._recognizer is None:
            recognizer_config = self.config.recognizer.model_copy(
                update={"executable": resolve_executable(self.config.recognizer.executable)}
            )
            self._recognizer = WhisperRecognizer(self.invoker, recognizer_config)

        self.store.init()
        logger.info(
            "Service started",
            extra={"transcription_enabled": self.config.recognizer.enabled},
        )

    def close(self) -> None:
        self.store.close()

    def build_pipeline(self) -> ConversionPipeline:
        """Returns a fresh pipeline for a single request."""
        return ConversionPipeline(
            workspaces=self.workspaces,
            transcoder=self.transcoder,
            store=self.store,
            upload_config=self.config.upload,
            recognizer=self.recognizer,
            media_type=self.config.transcoder.output_media_type,
        )


def get_container(request: Request) -> ServiceContainer:
    """Returns the container created by the application lifespan."""
    return request.app.state.container


ContainerDep = Annotated[ServiceContainer, Depends(get_container)]


def get_pipeline(container: ContainerDep) -> ConversionPipeline:
    """Returns a new conversion pipeline for the current request."""
    return container.build_pipeline()


PipelineDep = Annotated[ConversionPipeline, Depends(get_pipeline)]
