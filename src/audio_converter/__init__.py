from audio_converter.config import AppConfig, load_config
from audio_converter.exceptions import (
    PersistenceUnavailableError,
    ToolError,
    ToolFailedError,
    ToolTimeoutError,
    ToolUnavailableError,
    UploadTooLargeError,
    UploadValidationError,
)
from audio_converter.logging import setup_logging

__all__ = [
    "setup_logging",
    "load_config",
    "AppConfig",
    "UploadValidationError",
    "UploadTooLargeError",
    "ToolError",
    "ToolUnavailableError",
    "ToolFailedError",
    "ToolTimeoutError",
    "PersistenceUnavailableError",
]
