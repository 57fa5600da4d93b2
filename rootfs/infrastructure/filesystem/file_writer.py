"""File writing operations module."""
from pathlib import Path

import aiofiles

from rootfs.infrastructure.exceptions import io_boundary


class FileWriter:
    """Handles file writing operations only."""

    async def create_file(self, path: Path, content: bytes) -> None:
        """Write a new file. Fails with kind ``exists`` if anything is there."""
        with io_boundary(path):
            async with aiofiles.open(path, 'xb') as f:
                await f.write(content)

    async def overwrite_file(self, path: Path, content: bytes) -> None:
        """Replace the content of an existing file without ever creating one."""
        with io_boundary(path):
            async with aiofiles.open(path, 'r+b') as f:
                await f.write(content)
                await f.truncate()
