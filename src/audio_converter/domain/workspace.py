"""Per-request temporary workspaces with guaranteed cleanup."""

import logging
import shutil
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

SOURCE_STEM = "input"
INTERMEDIATE_STEM = "output"
TRANSCRIPT_DIR = "transcript"


class Workspace:
    """
    Filesystem paths owned by a single pipeline run.

    Every path is derived from the request identifier; nothing here is ever
    built from a client supplied filename.
    """

    def __init__(
        self,
        request_id: str,
        root: Path,
        source_extension: str,
        output_extension: str,
    ):
        self.request_id = request_id
        self.root = root
        self.source_path = root / f"{SOURCE_STEM}{source_extension}"
        self.intermediate_path = root / f"{INTERMEDIATE_STEM}{output_extension}"
        self.transcript_dir = root / TRANSCRIPT_DIR
        self.released = False
        self._tracked: list[Path] = [
            self.source_path,
            self.intermediate_path,
            self.transcript_dir,
        ]

    @property
    def tracked_paths(self) -> tuple[Path, ...]:
        return (*self._tracked, self.root)

    def track(self, path: Path) -> Path:
        """Registers an extra artifact for deletion on release."""
        self._tracked.append(path)
        return path


class WorkspaceManager:
    """Allocates and releases request workspaces under a common root."""

    def __init__(
        self,
        root: Path,
        prefix: str = "audio-converter-",
        output_extension: str = ".wav",
    ):
        self._root = root
        self._prefix = prefix
        self._output_extension = output_extension

    def acquire(self, request_id: str, source_extension: str) -> Workspace:
        """
        Creates the workspace directory for a request.

        Args:
            request_id: Freshly generated identifier naming the directory.
            source_extension: Validated extension used for the source file.

        Raises:
            FileExistsError: If the directory already exists.
        """
        self._root.mkdir(parents=True, exist_ok=True)
        directory = self._root / f"{self._prefix}{request_id}"
        directory.mkdir()
        workspace = Workspace(
            request_id, directory, source_extension, self._output_extension
        )
        try:
            workspace.transcript_dir.mkdir()
        except OSError:
            self.release(workspace)
            raise
        logger.info(
            "Workspace acquired",
            extra={"request_id": request_id, "path": str(directory)},
        )
        return workspace

    def release(self, workspace: Workspace) -> None:
        """Deletes every tracked path. Deletion errors are logged, never raised."""
        if workspace.released:
            return
        workspace.released = True

        for path in workspace.tracked_paths:
            try:
                if path.is_dir():
                    shutil.rmtree(path)
                else:
                    path.unlink(missing_ok=True)
            except OSError:
                logger.warning(
                    "Workspace cleanup failed",
                    extra={"request_id": workspace.request_id, "path": str(path)},
                    exc_info=True,
                )

        logger.info("Workspace released", extra={"request_id": workspace.request_id})

    @asynccontextmanager
    async def workspace(
        self, request_id: str, source_extension: str
    ) -> AsyncIterator[Workspace]:
        """Scoped acquisition: the workspace is released on every exit path."""
        workspace = self.acquire(request_id, source_extension)
        try:
            yield workspace
        finally:
            self.release(workspace)
