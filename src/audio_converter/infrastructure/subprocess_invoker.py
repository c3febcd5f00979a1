"""asyncio subprocess implementation of the ToolInvoker interface."""

import asyncio
import logging
import os
import signal
import time
from collections.abc import Sequence
from pathlib import Path

from audio_converter.domain.models import ToolInvocationResult
from audio_converter.exceptions import (
    ToolFailedError,
    ToolTimeoutError,
    ToolUnavailableError,
)

from .interfaces import ToolInvoker

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 2000


class SubprocessToolInvoker(ToolInvoker):
    """
    Runs external tools without blocking the event loop.

    Each child is started in its own session so that a timeout or a
    cancelled request can kill the tool together with anything it spawned.
    Both output pipes are drained concurrently by communicate().
    """

    async def run(
        self,
        executable: str,
        args: Sequence[str],
        *,
        timeout: float,
        cwd: Path | None = None,
    ) -> ToolInvocationResult:
        tool = os.path.basename(executable)
        started = time.monotonic()

        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                start_new_session=True,
            )
        except OSError as e:
            logger.error(
                "Tool could not be started",
                extra={"tool": tool, "executable": executable, "error": str(e)},
            )
            raise ToolUnavailableError(tool, e) from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            logger.warning(
                "Tool timed out",
                extra={
                    "tool": tool,
                    "pid": process.pid,
                    "timeout_seconds": timeout,
                },
            )
            raise ToolTimeoutError(tool, timeout) from None
        except asyncio.CancelledError:
            await self._kill(process)
            logger.info(
                "Tool cancelled", extra={"tool": tool, "pid": process.pid}
            )
            raise

        result = ToolInvocationResult(
            executable=executable,
            args=tuple(args),
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration_seconds=time.monotonic() - started,
        )

        logger.info(
            "Tool finished",
            extra={
                "tool": tool,
                "exit_code": result.exit_code,
                "duration_seconds": round(result.duration_seconds, 3),
            },
        )

        if result.exit_code != 0:
            raise ToolFailedError(
                tool,
                f"exited with status {result.exit_code}",
                exit_code=result.exit_code,
                stderr=result.stderr[-STDERR_TAIL_CHARS:],
            )
        return result

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        """Kills the process group of the child and reaps it."""
        # The group can outlive its leader when the tool spawned helpers.
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except OSError:
            logger.warning(
                "Process group kill failed, killing child only",
                extra={"pid": process.pid},
                exc_info=True,
            )
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
        # Shielded so a second cancellation cannot leave a zombie behind.
        await asyncio.shield(process.wait())
