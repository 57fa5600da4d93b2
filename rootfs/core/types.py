"""Common type definitions for rootfs"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Union


class NodeType(str, Enum):
    """Kinds of node an existence check can ask for"""

    FILE = "file"
    DIRECTORY = "directory"


class FsEventType(str, Enum):
    """Change notifications published for the sandboxed tree"""

    FILE_CREATED = "file-created"
    FILE_REMOVED = "file-removed"
    FILE_UPDATED = "file-updated"
    DIRECTORY_CREATED = "directory-created"
    DIRECTORY_REMOVED = "directory-removed"

    @classmethod
    def created(cls, is_directory: bool) -> "FsEventType":
        return cls.DIRECTORY_CREATED if is_directory else cls.FILE_CREATED

    @classmethod
    def removed(cls, is_directory: bool) -> "FsEventType":
        return cls.DIRECTORY_REMOVED if is_directory else cls.FILE_REMOVED


@dataclass(frozen=True)
class FsEvent:
    """A single change to a node of the sandboxed tree"""

    type: FsEventType
    path: str


@dataclass(frozen=True)
class NodeStat:
    """Kind of a node at one instant. Never cached."""

    is_directory: bool
    is_file: bool


@dataclass(frozen=True)
class DirectoryEntry:
    """One child of a listed directory"""

    path: str
    basename: str
    is_directory: bool
    is_file: bool

    def to_dict(self) -> Dict[str, Union[str, bool]]:
        return {
            "path": self.path,
            "basename": self.basename,
            "isDirectory": self.is_directory,
            "isFile": self.is_file,
        }


EventHandler = Callable[[FsEvent], None]
