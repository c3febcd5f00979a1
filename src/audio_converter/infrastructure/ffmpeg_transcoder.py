"""ffmpeg implementation of the AudioTranscoder interface."""

import logging
from pathlib import Path

from audio_converter.config import TranscoderConfig
from audio_converter.domain.models import ToolInvocationResult

from .interfaces import AudioTranscoder, ToolInvoker

logger = logging.getLogger(__name__)


class FFmpegTranscoder(AudioTranscoder):
    """Transcodes audio with `ffmpeg -y -i <source> <target>`."""

    def __init__(self, invoker: ToolInvoker, config: TranscoderConfig):
        self._invoker = invoker
        self._config = config

    async def transcode(self, source: Path, target: Path) -> ToolInvocationResult:
        logger.info(
            "Transcoding audio",
            extra={"source": source.name, "target": target.name},
        )
        return await self._invoker.run(
            self._config.executable,
            ["-y", "-i", str(source), str(target)],
            timeout=self._config.timeout_seconds,
            cwd=source.parent,
        )
