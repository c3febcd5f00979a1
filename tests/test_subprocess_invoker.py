import asyncio
import sys

import pytest

from audio_converter.exceptions import (
    ToolFailedError,
    ToolTimeoutError,
    ToolUnavailableError,
)
from audio_converter.infrastructure import SubprocessToolInvoker

from conftest import hanging_tool_body, read_pids, wait_until_dead, write_tool


def run(coro):
    return asyncio.run(coro)


def test_captures_output_and_exit_code():
    invoker = SubprocessToolInvoker()

    result = run(
        invoker.run(
            sys.executable,
            ["-c", "import sys; print('out'); sys.stderr.write('err')"],
            timeout=10,
        )
    )

    assert result.exit_code == 0
    assert result.stdout.strip() == "out"
    assert result.stderr == "err"
    assert result.duration_seconds >= 0
    assert result.args[0] == "-c"


def test_large_output_does_not_deadlock():
    invoker = SubprocessToolInvoker()
    script = (
        "import sys\n"
        "sys.stdout.write('o' * 2_000_000)\n"
        "sys.stderr.write('e' * 2_000_000)\n"
    )

    result = run(invoker.run(sys.executable, ["-c", script], timeout=30))

    assert len(result.stdout) == 2_000_000
    assert len(result.stderr) == 2_000_000


def test_non_zero_exit_raises_tool_failed():
    invoker = SubprocessToolInvoker()

    with pytest.raises(ToolFailedError) as exc_info:
        run(
            invoker.run(
                sys.executable,
                ["-c", "import sys; sys.stderr.write('bad input'); sys.exit(1)"],
                timeout=10,
            )
        )

    assert exc_info.value.exit_code == 1
    assert "bad input" in exc_info.value.stderr


def test_missing_executable_raises_tool_unavailable(tmp_path):
    invoker = SubprocessToolInvoker()

    with pytest.raises(ToolUnavailableError) as exc_info:
        run(invoker.run(str(tmp_path / "no-such-tool"), [], timeout=10))

    assert exc_info.value.tool == "no-such-tool"
    assert isinstance(exc_info.value.cause, FileNotFoundError)


def test_non_executable_file_raises_tool_unavailable(tmp_path):
    path = tmp_path / "not-executable"
    path.write_text("#!/bin/sh\necho hi\n")
    path.chmod(0o644)
    invoker = SubprocessToolInvoker()

    with pytest.raises(ToolUnavailableError):
        run(invoker.run(str(path), [], timeout=10))


def test_timeout_kills_process_group(tmp_path):
    pid_file = tmp_path / "pids"
    tool = write_tool(tmp_path, "hang", hanging_tool_body(pid_file, spawn_child=True))
    invoker = SubprocessToolInvoker()

    with pytest.raises(ToolTimeoutError) as exc_info:
        run(invoker.run(str(tool), [], timeout=1.5))

    assert exc_info.value.timeout_seconds == 1.5
    pids = read_pids(pid_file)
    assert len(pids) == 2
    assert wait_until_dead(pids)


def test_cancellation_kills_running_tool(tmp_path):
    pid_file = tmp_path / "pids"
    tool = write_tool(tmp_path, "hang", hanging_tool_body(pid_file))
    invoker = SubprocessToolInvoker()

    async def scenario():
        task = asyncio.ensure_future(invoker.run(str(tool), [], timeout=60))
        while not pid_file.exists() or not pid_file.read_text().strip():
            await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    run(scenario())

    assert wait_until_dead(read_pids(pid_file))


def test_concurrent_runs_do_not_block_each_other():
    invoker = SubprocessToolInvoker()

    async def scenario():
        loop = asyncio.get_running_loop()
        started = loop.time()
        results = await asyncio.gather(
            *(
                invoker.run(sys.executable, ["-c", "import time; time.sleep(1)"], timeout=10)
                for _ in range(4)
            )
        )
        return results, loop.time() - started

    results, elapsed = run(scenario())

    assert all(r.exit_code == 0 for r in results)
    assert elapsed < 3.5
