"""File read/write primitives exposed to the model as tools.

Both operations return a ToolResult and never raise: failures become
``success=False`` results so the model can read the error and adapt.
"""

from __future__ import annotations

import asyncio
import os
import re
import tempfile
import weakref

import aiofiles
import structlog

from flint.core.domain.errors import FilenameValidationError, PathResolutionError
from flint.core.domain.models import PathContext, ToolResult
from flint.infrastructure.filesystem.filename_validator import validate_filename
from flint.infrastructure.filesystem.path_resolver import (
    is_within,
    resolve_path,
    validate_write_path,
)

logger = structlog.get_logger()


class FileOperations:
    """Sandboxed ``read_file`` and ``save_output`` for agent tool calls.

    One instance is shared by every execution in the process. Writes to the
    same resolved path are serialized with a per-path lock and land through
    an atomic rename, so readers never see a partially written file. Across
    processes the last writer wins.
    """

    def __init__(self):
        # Entries disappear once no writer holds or waits on the lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        self.logger = logger.bind(component="file_operations")

    def _lock_for(self, path: str) -> asyncio.Lock:
        lock = self._locks.get(path)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[path] = lock
        return lock

    async def read_file(self, file_path: str, context: PathContext) -> ToolResult:
        """Read a UTF-8 text file addressed by a path template.

        Args:
            file_path: Path template, e.g. ``{bundle-root}/config.yaml``
            context: Path context of the current execution

        Returns:
            ToolResult with ``path``, ``content`` and ``size`` on success
        """
        self.logger.info("file_read_start", path=file_path)

        try:
            resolved = resolve_path(file_path, context)
        except PathResolutionError as e:
            self.logger.warning("file_read_denied", path=file_path, error=str(e))
            return ToolResult.failure(str(e), path=file_path)

        try:
            async with aiofiles.open(resolved, "r", encoding="utf-8", newline="") as f:
                content = await f.read()
        except FileNotFoundError:
            return ToolResult.failure(f"File not found: {file_path}", path=resolved)
        except PermissionError:
            return ToolResult.failure(f"Permission denied: {file_path}", path=resolved)
        except Exception as e:
            self.logger.error("file_read_failed", path=file_path, error=str(e))
            return ToolResult.failure(f"Failed to read file: {e}", path=resolved)

        self.logger.info("file_read_success", path=file_path, size=len(content))
        return ToolResult(success=True, path=resolved, content=content, size=len(content))

    async def save_output(
        self, file_path: str, content: str, context: PathContext
    ) -> ToolResult:
        """Write an output file inside the output directory.

        Checks run in order: filename quality, path resolution, write
        confinement, read-only core root.

        Args:
            file_path: Path template of the file to write
            content: Text to write
            context: Path context of the current execution

        Returns:
            ToolResult with ``path`` and ``size`` on success
        """
        self.logger.info("file_save_start", path=file_path, content_length=len(content))

        try:
            validate_filename(re.split(r"[\\/]", file_path)[-1])
            resolved = resolve_path(file_path, context)
            validate_write_path(resolved, context)
        except (FilenameValidationError, PathResolutionError) as e:
            self.logger.warning("file_save_rejected", path=file_path, error=str(e))
            return ToolResult.failure(str(e), path=file_path)

        if is_within(resolved, context.core_root):
            return ToolResult.failure(
                "Write operation denied: Core files are read-only. "
                "Save outputs under the conversations output directory.",
                path=file_path,
            )

        try:
            async with self._lock_for(resolved):
                await self._atomic_write(resolved, content)
        except Exception as e:
            self.logger.error("file_save_failed", path=file_path, error=str(e))
            return ToolResult.failure(f"Failed to write file: {e}", path=resolved)

        self.logger.info("file_save_success", path=resolved, size=len(content))
        return ToolResult(success=True, path=resolved, size=len(content))

    async def _atomic_write(self, path: str, content: str) -> None:
        directory = os.path.dirname(path)
        os.makedirs(directory, exist_ok=True)

        temp_fd, temp_path = tempfile.mkstemp(dir=directory, suffix=".tmp", prefix=".flint_")
        os.close(temp_fd)
        try:
            async with aiofiles.open(temp_path, "w", encoding="utf-8", newline="") as f:
                await f.write(content)
            os.replace(temp_path, path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
