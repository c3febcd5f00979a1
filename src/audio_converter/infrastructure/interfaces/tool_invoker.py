"""Abstract interface for running external tools."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from audio_converter.domain.models import ToolInvocationResult


class ToolInvoker(ABC):
    """Abstract base class for external process runners."""

    @abstractmethod
    async def run(
        self,
        executable: str,
        args: Sequence[str],
        *,
        timeout: float,
        cwd: Path | None = None,
    ) -> ToolInvocationResult:
        """
        Runs an executable to completion and captures its output.

        Args:
            executable: Resolved path or name of the program.
            args: Arguments passed after the executable.
            timeout: Maximum wall-clock seconds before the process is killed.
            cwd: Optional working directory.

        Returns:
            The captured result of a run that exited with status 0.

        Raises:
            ToolUnavailableError: If the executable cannot be started.
            ToolFailedError: If the process exits with a non-zero status.
            ToolTimeoutError: If the process exceeds the timeout.
        """
