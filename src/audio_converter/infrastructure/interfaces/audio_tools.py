"""Abstract interfaces for the transcoding and speech-recognition steps."""

from abc import ABC, abstractmethod
from pathlib import Path

from audio_converter.domain.models import ToolInvocationResult


class AudioTranscoder(ABC):
    """Converts compressed audio into an uncompressed waveform."""

    @abstractmethod
    async def transcode(self, source: Path, target: Path) -> ToolInvocationResult:
        """
        Transcodes the source file into the target path.

        The caller is responsible for verifying the target exists afterwards.

        Raises:
            ToolError: If the underlying tool cannot run or fails.
        """


class SpeechRecognizer(ABC):
    """Produces a text transcript from a waveform."""

    @abstractmethod
    def transcript_path(self, audio: Path, output_dir: Path) -> Path:
        """Returns where the transcript for `audio` is expected to be written."""

    @abstractmethod
    async def transcribe(self, audio: Path, output_dir: Path) -> ToolInvocationResult:
        """
        Transcribes the waveform, writing a transcript into output_dir.

        Raises:
            ToolError: If the underlying tool cannot run or fails.
        """
