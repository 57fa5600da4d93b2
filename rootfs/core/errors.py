"""Error taxonomy exposed to rootfs clients.

Every error a filesystem operation raises on purpose derives from
``RootFsError``. Paths carried by these errors are always logical
(root-relative) paths; the real root never appears in them.
"""

from typing import Any, Dict, Optional


class RootFsError(Exception):
    """Base exception for all rootfs errors"""

    name = "RootFsError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "name": self.name,
            "details": self.details,
        }


class ConfigurationError(RootFsError):
    """Raised when configuration is invalid"""

    name = "ConfigurationError"


class InvalidOption(RootFsError):
    """Raised when a required option is missing or invalid.

    Detected before any I/O takes place. ``kind`` is ``"required"`` for
    missing values and ``"invalid"`` for values of the wrong shape.
    """

    name = "InvalidOption"

    def __init__(self, option: str, kind: str, message: Optional[str] = None):
        self.option = option
        self.kind = kind
        super().__init__(
            message or f"Option '{option}' is {kind}",
            {"option": option, "kind": kind},
        )


class PathError(RootFsError):
    """Base class for errors about the node at a logical path"""

    name = "PathError"
    default_message = "Path error"

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"{self.default_message}: {path}", {"path": path})


class PathExists(PathError):
    """The operation required an empty path but found a node there"""

    name = "PathExists"
    default_message = "Path already exists"


class PathDoesNotExist(PathError):
    """The operation required a node but the path is empty"""

    name = "PathDoesNotExist"
    default_message = "Path does not exist"


class PathIsDirectory(PathError):
    """The operation required a file but found a directory"""

    name = "PathIsDirectory"
    default_message = "Path is a directory"


class PathIsNotDirectory(PathError):
    """The operation required a directory but found something else"""

    name = "PathIsNotDirectory"
    default_message = "Path is not a directory"


class IllegalPath(PathError):
    """The path resolves outside the sandbox root.

    This is a security signal, not an ordinary not-found condition:
    callers should audit it rather than retry.
    """

    name = "IllegalPath"
    default_message = "Illegal path"
