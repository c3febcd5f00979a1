"""Shared fixtures and fakes for audio_converter tests."""

import os

# Keep the tracer quiet: no agent runs during tests.
os.environ.setdefault("DD_TRACE_ENABLED", "false")

import asyncio
import stat
import sys
import textwrap
import time
from pathlib import Path

import pytest

from audio_converter.config import UploadConfig
from audio_converter.domain import ToolInvocationResult, WorkspaceManager
from audio_converter.exceptions import PersistenceUnavailableError
from audio_converter.infrastructure.interfaces import (
    AudioTranscoder,
    MetadataStore,
    SpeechRecognizer,
    ToolInvoker,
)

WAV_BYTES = b"RIFF\x24\x00\x00\x00WAVEfmt "
MP3_BYTES = b"ID3\x03\x00\x00\x00fake-mp3-frames"


def _result(executable: str, args=()) -> ToolInvocationResult:
    return ToolInvocationResult(
        executable=executable,
        args=tuple(args),
        exit_code=0,
        stdout="",
        stderr="",
        duration_seconds=0.01,
    )


class RecordingInvoker(ToolInvoker):
    """Records invocations instead of spawning processes."""

    def __init__(self):
        self.calls = []

    async def run(self, executable, args, *, timeout, cwd=None):
        self.calls.append(
            {"executable": executable, "args": list(args), "timeout": timeout, "cwd": cwd}
        )
        return _result(executable, args)


class FakeTranscoder(AudioTranscoder):
    def __init__(self, output: bytes | None = WAV_BYTES, error=None, delay=0.0):
        self.output = output
        self.error = error
        self.delay = delay
        self.calls = []
        self.seen_source = None

    async def transcode(self, source: Path, target: Path):
        self.calls.append((source, target))
        self.seen_source = source.read_bytes()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.output is not None:
            target.write_bytes(self.output)
        return _result("ffmpeg")


class FakeRecognizer(SpeechRecognizer):
    def __init__(self, text: str | bytes | None = "hello world", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def transcript_path(self, audio: Path, output_dir: Path) -> Path:
        return output_dir / f"{audio.stem}.txt"

    async def transcribe(self, audio: Path, output_dir: Path):
        self.calls.append((audio, output_dir))
        if self.error is not None:
            raise self.error
        target = self.transcript_path(audio, output_dir)
        if isinstance(self.text, bytes):
            target.write_bytes(self.text)
        elif self.text is not None:
            target.write_text(self.text + "\n")
        return _result("whisper")


class FakeStore(MetadataStore):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.records = []
        self.initialized = False
        self.closed = False

    def init(self):
        self.initialized = True

    def close(self):
        self.closed = True

    async def record(self, filename, converted_at):
        if self.fail:
            raise PersistenceUnavailableError(filename, ConnectionError("store down"))
        self.records.append((filename, converted_at))
        return f"record-{len(self.records)}"


def write_tool(directory: Path, name: str, body: str) -> Path:
    """Writes an executable Python script acting as an external tool."""
    path = directory / name
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


FAKE_FFMPEG = """
import sys
source = sys.argv[sys.argv.index("-i") + 1]
target = sys.argv[-1]
with open(source, "rb") as src, open(target, "wb") as dst:
    dst.write(b"RIFF" + src.read())
sys.stderr.write("fake ffmpeg done\\n")
"""

FAKE_WHISPER = """
import os
import sys
audio = sys.argv[1]
output_dir = sys.argv[sys.argv.index("--output_dir") + 1]
stem = os.path.splitext(os.path.basename(audio))[0]
with open(os.path.join(output_dir, stem + ".txt"), "w") as f:
    f.write("hello from whisper\\n")
"""


def hanging_tool_body(pid_file: Path, spawn_child: bool = False) -> str:
    child = ""
    if spawn_child:
        child = textwrap.dedent(
            """
            import subprocess
            proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
            pids.append(proc.pid)
            """
        )
    return (
        "import os, sys, time\n"
        "pids = [os.getpid()]\n"
        + child
        + f"open({str(pid_file)!r}, 'w').write(' '.join(map(str, pids)))\n"
        + "time.sleep(60)\n"
    )


def read_pids(pid_file: Path, timeout: float = 5.0) -> list[int]:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if pid_file.exists():
            content = pid_file.read_text().strip()
            if content:
                return [int(p) for p in content.split()]
        time.sleep(0.05)
    raise AssertionError("tool never wrote its pid file")


def is_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    # A killed but unreaped grandchild shows up as a zombie.
    try:
        state = Path(f"/proc/{pid}/stat").read_text().rsplit(")", 1)[1].split()[0]
    except (OSError, IndexError):
        return False
    return state != "Z"


def wait_until_dead(pids: list[int], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not any(is_alive(pid) for pid in pids):
            return True
        time.sleep(0.05)
    return False


@pytest.fixture
def workspace_root(tmp_path) -> Path:
    return tmp_path / "workspaces"


@pytest.fixture
def workspaces(workspace_root) -> WorkspaceManager:
    return WorkspaceManager(workspace_root)


@pytest.fixture
def upload_config() -> UploadConfig:
    return UploadConfig(accepted_extensions=frozenset({".mp3"}), max_bytes=1024)


def leftover(root: Path) -> list[Path]:
    """Everything still present under a workspace root."""
    if not root.exists():
        return []
    return list(root.rglob("*"))
