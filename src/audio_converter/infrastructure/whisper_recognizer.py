"""Whisper CLI implementation of the SpeechRecognizer interface."""

import logging
from pathlib import Path

from audio_converter.config import SpeechRecognitionConfig
from audio_converter.domain.models import ToolInvocationResult

from .interfaces import SpeechRecognizer, ToolInvoker

logger = logging.getLogger(__name__)


class WhisperRecognizer(SpeechRecognizer):
    """
    Transcribes audio with the Whisper command line tool.

    Whisper names its output after the input file stem, so a waveform
    `output.wav` yields `<dir>/output.txt` with format `txt` or `all`.
    `extra_args` are placed before the audio path, which allows running
    Whisper through an interpreter (`python -m whisper`).
    """

    def __init__(self, invoker: ToolInvoker, config: SpeechRecognitionConfig):
        self._invoker = invoker
        self._config = config

    def transcript_path(self, audio: Path, output_dir: Path) -> Path:
        return output_dir / f"{audio.stem}.txt"

    async def transcribe(self, audio: Path, output_dir: Path) -> ToolInvocationResult:
        args = [
            *self._config.extra_args,
            str(audio),
            "--language",
            self._config.language,
            "--model",
            self._config.model,
            "--output_format",
            self._config.output_format,
            "--output_dir",
            str(output_dir),
        ]
        logger.info(
            "Transcribing audio",
            extra={
                "audio": audio.name,
                "language": self._config.language,
                "model": self._config.model,
            },
        )
        return await self._invoker.run(
            self._config.executable,
            args,
            timeout=self._config.timeout_seconds,
            cwd=output_dir,
        )
