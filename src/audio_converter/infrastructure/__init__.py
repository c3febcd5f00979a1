"""Concrete implementations of infrastructure interfaces."""

from .ffmpeg_transcoder import FFmpegTranscoder
from .subprocess_invoker import SubprocessToolInvoker
from .whisper_recognizer import WhisperRecognizer

__all__ = ["FFmpegTranscoder", "SubprocessToolInvoker", "WhisperRecognizer"]
