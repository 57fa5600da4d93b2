"""Directory and subtree operations module."""
import errno
import os
import shutil
from pathlib import Path
from typing import List

import aiofiles.os
from aiofiles.ospath import wrap

from rootfs.infrastructure.exceptions import io_boundary


def _copy_tree(source: Path, destination: Path) -> None:
    if os.path.lexists(destination):
        raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), str(destination))

    try:
        if source.is_dir() and not source.is_symlink():
            shutil.copytree(source, destination, symlinks=True)
        else:
            shutil.copy2(source, destination, follow_symlinks=False)
    except FileExistsError as e:
        # Someone else's node appeared at the destination; not ours to discard
        if e.filename is not None and Path(e.filename) == destination:
            raise
        _discard(destination)
        raise
    except BaseException:
        _discard(destination)
        raise


def _remove_tree(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        os.unlink(path)


def _discard(path: Path) -> None:
    try:
        _remove_tree(path)
    except FileNotFoundError:
        pass


class DirectoryManager:
    """Handles directory and subtree operations only."""

    def __init__(self, permissions: int = 0o755):
        self.permissions = permissions
        self._copy_tree_async = wrap(_copy_tree)
        self._remove_tree_async = wrap(_remove_tree)

    async def create_directory(self, path: Path) -> None:
        """Create a directory and any missing parents. Fails if it exists."""
        with io_boundary(path):
            await aiofiles.os.makedirs(path, mode=self.permissions, exist_ok=False)

    async def ensure_directory(self, path: Path) -> None:
        """Create a directory and any missing parents. Idempotent."""
        with io_boundary(path):
            await aiofiles.os.makedirs(path, mode=self.permissions, exist_ok=True)

    async def list_directory(self, path: Path) -> List[str]:
        """Names of the directory's children, sorted."""
        with io_boundary(path):
            names = await aiofiles.os.listdir(path)
        return sorted(names)

    async def copy_tree(self, source: Path, destination: Path) -> None:
        """Copy a file or a whole subtree. All-or-nothing, never overwrites.

        A partially written destination is removed before the error
        propagates.
        """
        with io_boundary(source):
            await self._copy_tree_async(source, destination)

    async def remove_tree(self, path: Path) -> None:
        """Remove a file, a link or a whole subtree."""
        with io_boundary(path):
            await self._remove_tree_async(path)
