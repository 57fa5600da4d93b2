"""File reading operations module."""
from pathlib import Path

import aiofiles

from rootfs.infrastructure.exceptions import io_boundary


class FileReader:
    """Handles file reading operations only."""

    async def read_file(self, path: Path) -> bytes:
        """Read entire file content."""
        with io_boundary(path):
            async with aiofiles.open(path, 'rb') as f:
                return await f.read()
