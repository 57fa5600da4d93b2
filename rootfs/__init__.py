"""Sandboxed access to a directory subtree with change notifications.

Typical use::

    import rootfs

    async with rootfs.create_filesystem("/srv/workspace") as fs:
        fs.subscribe("file-created", print)
        await fs.create_file("/notes/today.md", "hello")
"""
from pathlib import Path
from typing import Optional, Union

from rootfs.application.services.filesystem_service import FilesystemService
from rootfs.core.config import Settings, get_settings
from rootfs.core.errors import (
    ConfigurationError,
    IllegalPath,
    InvalidOption,
    PathDoesNotExist,
    PathExists,
    PathIsDirectory,
    PathIsNotDirectory,
    RootFsError,
)
from rootfs.core.types import DirectoryEntry, FsEvent, FsEventType, NodeStat, NodeType
from rootfs.infrastructure.filesystem.path_sandbox import PathSandbox

__version__ = "0.1.0"


def create_filesystem(
    root: Optional[Union[str, Path, PathSandbox]] = None,
    settings: Optional[Settings] = None,
    suppress_fs_events: Optional[bool] = None,
) -> FilesystemService:
    """Build a FilesystemService, defaulting the root to ``settings.root_path``."""
    settings = settings or get_settings()
    if root is None:
        root = settings.root_path
    return FilesystemService(root, settings=settings, suppress_fs_events=suppress_fs_events)


__all__ = [
    "create_filesystem",
    "FilesystemService",
    "PathSandbox",
    "Settings",
    "get_settings",
    "DirectoryEntry",
    "FsEvent",
    "FsEventType",
    "NodeStat",
    "NodeType",
    "RootFsError",
    "ConfigurationError",
    "IllegalPath",
    "InvalidOption",
    "PathDoesNotExist",
    "PathExists",
    "PathIsDirectory",
    "PathIsNotDirectory",
]
