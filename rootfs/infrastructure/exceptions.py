"""Infrastructure layer exceptions.

I/O delegates never let a raw ``OSError`` cross their boundary. They wrap it
in a ``FilesystemError`` whose ``kind`` tag tells the caller what went wrong,
so callers match on the tag instead of on exception classes.
"""
import errno
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator, Union


class IOErrorKind(str, Enum):
    """Recognized outcomes of a failed filesystem call."""

    NOT_FOUND = "not_found"
    EXISTS = "exists"
    IS_DIRECTORY = "is_directory"
    NOT_DIRECTORY = "not_directory"
    OTHER = "other"


_ERRNO_KINDS = {
    errno.ENOENT: IOErrorKind.NOT_FOUND,
    errno.EEXIST: IOErrorKind.EXISTS,
    errno.EISDIR: IOErrorKind.IS_DIRECTORY,
    errno.ENOTDIR: IOErrorKind.NOT_DIRECTORY,
}


class InfrastructureError(Exception):
    """Base infrastructure error."""
    pass


class FilesystemError(InfrastructureError):
    """Filesystem operation error tagged with its kind."""

    def __init__(self, kind: IOErrorKind, path: Union[str, Path], cause: OSError):
        self.kind = kind
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"{kind.value}: {cause}")

    @classmethod
    def from_os_error(cls, error: OSError, path: Union[str, Path]) -> "FilesystemError":
        kind = _ERRNO_KINDS.get(error.errno, IOErrorKind.OTHER)
        return cls(kind, path, error)


@contextmanager
def io_boundary(path: Union[str, Path]) -> Iterator[None]:
    """Re-raise any OSError from the enclosed block as a FilesystemError."""
    try:
        yield
    except OSError as error:
        raise FilesystemError.from_os_error(error, path) from error
