"""Custom exceptions for the audio-converter service."""


class UploadValidationError(Exception):
    """Raised when an upload is rejected before any processing starts."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class UploadTooLargeError(UploadValidationError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, size: int, max_bytes: int):
        self.size = size
        self.max_bytes = max_bytes
        super().__init__(f"Uploaded file exceeds the {max_bytes} byte limit")


class ToolError(Exception):
    """Base class for failures of an external tool invocation."""

    def __init__(self, tool: str, message: str, cause: Exception | None = None):
        self.tool = tool
        self.cause = cause
        super().__init__(message)


class ToolUnavailableError(ToolError):
    """Raised when a tool executable cannot be found or started."""

    def __init__(self, tool: str, cause: Exception | None = None):
        super().__init__(tool, f"Tool '{tool}' could not be started", cause)


class ToolFailedError(ToolError):
    """Raised when a tool exits non-zero or does not produce its artifact."""

    def __init__(
        self,
        tool: str,
        reason: str,
        exit_code: int | None = None,
        stderr: str = "",
    ):
        self.reason = reason
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(tool, f"Tool '{tool}' failed: {reason}")


class ToolTimeoutError(ToolError):
    """Raised when a tool runs past its configured timeout and is killed."""

    def __init__(self, tool: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(tool, f"Tool '{tool}' timed out after {timeout_seconds}s")


class PersistenceUnavailableError(Exception):
    """Raised when the metadata store cannot record a conversion."""

    def __init__(self, filename: str, cause: Exception | None = None):
        self.filename = filename
        self.cause = cause
        super().__init__(f"Failed to record conversion of '{filename}'")
