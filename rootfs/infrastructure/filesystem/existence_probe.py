"""Stat wrapper answering "is there a node here, and of what kind"."""
import os
from pathlib import Path
from stat import S_ISDIR, S_ISREG
from typing import Optional

import aiofiles.os
from aiofiles.ospath import wrap

from rootfs.core.types import NodeStat, NodeType
from rootfs.infrastructure.exceptions import FilesystemError, IOErrorKind, io_boundary

# A file standing where a directory is expected means the node is absent
_ABSENT_KINDS = (IOErrorKind.NOT_FOUND, IOErrorKind.NOT_DIRECTORY)

_lstat = wrap(os.lstat)


def _node_stat(result: os.stat_result) -> NodeStat:
    return NodeStat(
        is_directory=S_ISDIR(result.st_mode),
        is_file=S_ISREG(result.st_mode),
    )


class ExistenceProbe:
    """Handles existence checks only."""

    async def stat(self, path: Path) -> NodeStat:
        """Stat a real path, following symlinks.

        Raises:
            FilesystemError: for any failure, not-found included
        """
        with io_boundary(path):
            result = await aiofiles.os.stat(path)
        return _node_stat(result)

    async def lstat(self, path: Path) -> NodeStat:
        """Stat the node itself. A symlink is neither file nor directory."""
        with io_boundary(path):
            result = await _lstat(path)
        return _node_stat(result)

    async def path_exists(
        self,
        path: Path,
        expected_type: Optional[NodeType] = None
    ) -> bool:
        """Whether a node exists at a real path, optionally of a given kind."""
        try:
            node = await self.stat(path)
        except FilesystemError as e:
            if e.kind in _ABSENT_KINDS:
                return False
            raise

        if expected_type is None:
            return True
        if expected_type is NodeType.DIRECTORY:
            return node.is_directory
        return node.is_file
