"""Logical to real path translation with root containment."""
import os
from pathlib import Path
from typing import List, NoReturn, Optional, Union

from rootfs.core.errors import IllegalPath, InvalidOption
from rootfs.infrastructure.logging import get_logger

logger = get_logger(__name__)


def ensure_starting_slash(path: str) -> str:
    return path if path.startswith("/") else "/" + path


def _segments(path: str) -> List[str]:
    return [segment for segment in path.split("/") if segment]


class PathSandbox:
    """Resolves client paths against a fixed root and refuses any escape."""

    def __init__(self, root: Union[str, Path]):
        if not root:
            raise InvalidOption("root", "required")

        # Lexical form for building real paths, canonical form for checks
        self.root = Path(os.path.abspath(os.fspath(root)))
        self.canonical_root = self.root.resolve()

    def resolve(self, logical_path: str, allow_root: bool = False) -> Path:
        """Translate a logical path to a real path under the root.

        The joined path is normalized and then canonicalized (symlinks
        followed) before containment is checked, so ``..`` segments are
        fine as long as they stay inside the root. The real path returned is
        the normalized one: operations act on a link, not on its target.

        Raises:
            IllegalPath: the path leaves the root, or names the root itself
                while ``allow_root`` is off
        """
        if not isinstance(logical_path, str):
            raise InvalidOption("path", "invalid", "Path must be a string")

        logical_path = ensure_starting_slash(logical_path)

        if "\x00" in logical_path:
            self._reject(logical_path, "null byte")

        normalized = Path(
            os.path.normpath(os.path.join(self.root, logical_path.lstrip("/")))
        )

        if not self._is_contained(normalized, self.root):
            self._reject(logical_path, "outside root")

        if normalized == self.root:
            if not allow_root:
                self._reject(logical_path, "root access not permitted")
            return normalized

        try:
            canonical = normalized.resolve(strict=False)
        except (OSError, RuntimeError):
            self._reject(logical_path, "unresolvable")

        if canonical == self.canonical_root or not self._is_contained(
            canonical, self.canonical_root
        ):
            self._reject(logical_path, "resolves outside root")

        return normalized

    def normalize(self, logical_path: str, allow_root: bool = False) -> str:
        """Canonical logical form of a client path (``dir/`` -> ``/dir``)."""
        real_path = self.resolve(logical_path, allow_root=allow_root)
        return self.to_logical(real_path) or "/"

    def to_logical(self, real_path: Union[str, Path]) -> Optional[str]:
        """Strip the root from a real path. None for the root or outside it."""
        path = Path(os.path.normpath(os.fspath(real_path)))
        for root in (self.root, self.canonical_root):
            try:
                relative = path.relative_to(root)
            except ValueError:
                continue
            if str(relative) == ".":
                return None
            return "/" + relative.as_posix()
        return None

    @staticmethod
    def is_path_within(path: str, potential_parent: str) -> bool:
        """Whether ``path`` lies strictly below ``potential_parent``.

        Compared segment by segment, so ``/dir10/x`` is not within ``/dir1``.
        """
        path_segments = _segments(path)
        parent_segments = _segments(potential_parent)
        return (
            len(path_segments) > len(parent_segments)
            and path_segments[: len(parent_segments)] == parent_segments
        )

    @staticmethod
    def _is_contained(path: Path, root: Path) -> bool:
        try:
            path.relative_to(root)
        except ValueError:
            return False
        return True

    def _reject(self, logical_path: str, reason: str) -> NoReturn:
        logger.warning(
            "illegal_path_rejected",
            path=logical_path,
            reason=reason,
            security=True,
        )
        raise IllegalPath(logical_path)
