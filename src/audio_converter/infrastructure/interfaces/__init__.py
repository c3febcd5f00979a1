"""Abstract interfaces for infrastructure dependencies."""

from .audio_tools import AudioTranscoder, SpeechRecognizer
from .metadata_store import MetadataStore
from .tool_invoker import ToolInvoker

__all__ = ["AudioTranscoder", "MetadataStore", "SpeechRecognizer", "ToolInvoker"]
