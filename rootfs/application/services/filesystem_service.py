"""Sandboxed filesystem operations.

Every public operation follows the same sequence: validate arguments,
resolve paths through the sandbox, probe the current state, delegate the
I/O, map kind-tagged delegate failures to client errors, and finally
publish a change event unless events are suppressed.

Probes are advisory. Between a probe and the I/O that follows it another
actor may change the tree, so the delegate's own failure is what decides
the error a caller sees.
"""

import asyncio
import functools
import posixpath
from pathlib import Path
from typing import Dict, List, NoReturn, Optional, Union

from rootfs.application.services.base import ServiceBase
from rootfs.core.config import Settings, get_settings
from rootfs.core.errors import (
    ConfigurationError,
    InvalidOption,
    PathDoesNotExist,
    PathExists,
    PathIsDirectory,
    PathIsNotDirectory,
    RootFsError,
)
from rootfs.core.types import (
    DirectoryEntry,
    EventHandler,
    FsEventType,
    NodeStat,
    NodeType,
)
from rootfs.infrastructure.events import EventBus
from rootfs.infrastructure.exceptions import FilesystemError, IOErrorKind
from rootfs.infrastructure.filesystem import (
    DirectoryManager,
    ExistenceProbe,
    FileReader,
    FileWriter,
    PathSandbox,
)
from rootfs.infrastructure.logging import operation_context
from rootfs.infrastructure.watcher import WatchBridge

Contents = Union[str, bytes, bytearray]


def _operation(name: str):
    """Bind the operation name into the log context of the wrapped call."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            with operation_context(operation=name):
                return await func(self, *args, **kwargs)

        return wrapper

    return decorator


def _require(value, option: str) -> None:
    if value is None or value == "":
        raise InvalidOption(option, "required")


def _encode(contents: Contents) -> bytes:
    if isinstance(contents, str):
        return contents.encode("utf-8")
    if isinstance(contents, (bytes, bytearray)):
        return bytes(contents)
    raise InvalidOption("contents", "invalid", "Contents must be str or bytes")


def _raise_mapped(error: FilesystemError, mapping: Dict[IOErrorKind, RootFsError]) -> NoReturn:
    """Raise the client error registered for the failure's kind.

    Failures of any other kind propagate as the original OSError.
    """
    mapped = mapping.get(error.kind)
    if mapped is None:
        raise error.cause from None
    raise mapped from error.cause


class FilesystemService(ServiceBase):
    """File and directory operations confined to a root directory.

    All paths taken and returned are logical paths: root-relative strings
    starting with ``/``. Change events are published on ``self.bus`` as
    :class:`~rootfs.core.types.FsEvent` values, either by the operations
    themselves or, while a watcher runs, by the watch bridge alone.
    """

    def __init__(
        self,
        root: Union[str, Path, PathSandbox],
        settings: Optional[Settings] = None,
        suppress_fs_events: Optional[bool] = None,
    ):
        super().__init__()
        if not root:
            raise InvalidOption("root", "required")

        self.settings = settings or get_settings()
        self.sandbox = root if isinstance(root, PathSandbox) else PathSandbox(root)

        # Mutes this service's own events; the watcher is unaffected
        if suppress_fs_events is None:
            suppress_fs_events = self.settings.suppress_fs_events
        self.suppress_fs_events = suppress_fs_events

        self.probe = ExistenceProbe()
        self.reader = FileReader()
        self.writer = FileWriter()
        self.directories = DirectoryManager()

        self.bus = EventBus()
        if self.settings.watcher_use_polling:
            self.watcher = WatchBridge.polling(
                self.sandbox,
                self.bus,
                settle_seconds=self.settings.watcher_settle_seconds,
                poll_interval=self.settings.watcher_poll_interval,
            )
        else:
            self.watcher = WatchBridge(
                self.sandbox,
                self.bus,
                settle_seconds=self.settings.watcher_settle_seconds,
            )

    async def initialize(self) -> None:
        """Make sure the root exists and is a directory."""
        root = self.sandbox.root
        try:
            node = await self.probe.stat(root)
        except FilesystemError as e:
            if e.kind is not IOErrorKind.NOT_FOUND:
                raise e.cause from None
            if not self.settings.create_root:
                raise ConfigurationError("Sandbox root does not exist") from None
            await self.directories.ensure_directory(root)
            self.logger.info("sandbox_root_created")
            return

        if not node.is_directory:
            raise ConfigurationError("Sandbox root is not a directory")

    async def cleanup(self) -> None:
        await self.stop_watcher()

    # Events

    def subscribe(self, event_type: Union[FsEventType, str], handler: EventHandler) -> None:
        """Call ``handler(event)`` for every event of ``event_type``."""
        self.bus.subscribe(event_type, handler)

    def _notify(self, event_type: FsEventType, path: str) -> None:
        if self.suppress_fs_events:
            return
        self.bus.notify(event_type, path)

    async def start_watcher(self) -> None:
        """Publish changes seen on disk instead of synthesizing them.

        Completes once the watcher's initial scan is ready.
        """
        await self.watcher.start()

    async def stop_watcher(self) -> None:
        await self.watcher.stop()

    # Queries

    @_operation("stat")
    async def stat(self, path: str) -> NodeStat:
        _require(path, "path")
        logical = self.sandbox.normalize(path, allow_root=True)
        real = self.sandbox.resolve(logical, allow_root=True)
        try:
            return await self.probe.stat(real)
        except FilesystemError as e:
            _raise_mapped(e, {
                IOErrorKind.NOT_FOUND: PathDoesNotExist(logical),
                IOErrorKind.NOT_DIRECTORY: PathDoesNotExist(logical),
            })

    @_operation("path_exists")
    async def path_exists(self, path: str, type: Optional[Union[NodeType, str]] = None) -> bool:
        """Whether a node exists at ``path``, optionally of kind ``type``.

        Args:
            path: logical path; ``/`` names the root
            type: ``"file"``, ``"directory"`` or None for either
        """
        _require(path, "path")
        expected_type = None
        if type is not None:
            try:
                expected_type = NodeType(type)
            except ValueError:
                raise InvalidOption("type", "invalid", f"Unknown node type: {type!r}") from None

        real = self.sandbox.resolve(path, allow_root=True)
        return await self._exists(real, expected_type)

    # Files

    @_operation("create_file")
    async def create_file(self, filepath: str, contents: Optional[Contents] = "") -> None:
        """Create a file, and any missing parent directories.

        The path must be empty: an existing file is never overwritten.
        """
        _require(filepath, "filepath")
        data = _encode(contents if contents is not None else b"")

        path = self.sandbox.normalize(filepath)
        real = self.sandbox.resolve(path)

        if await self._exists(real):
            raise PathExists(path)

        await self._ensure_parent(path, real)

        try:
            await self.writer.create_file(real, data)
        except FilesystemError as e:
            _raise_mapped(e, {
                IOErrorKind.EXISTS: PathExists(path),
                IOErrorKind.IS_DIRECTORY: PathExists(path),
            })

        self.logger.debug("file_created", path=path, size=len(data))
        self._notify(FsEventType.FILE_CREATED, path)

    @_operation("read_file")
    async def read_file(self, filepath: str) -> bytes:
        _require(filepath, "filepath")
        path = self.sandbox.normalize(filepath)
        real = self.sandbox.resolve(path)

        try:
            return await self.reader.read_file(real)
        except FilesystemError as e:
            _raise_mapped(e, {
                IOErrorKind.NOT_FOUND: PathDoesNotExist(path),
                IOErrorKind.NOT_DIRECTORY: PathDoesNotExist(path),
                IOErrorKind.IS_DIRECTORY: PathIsDirectory(path),
            })

    @_operation("update_file")
    async def update_file(self, filepath: str, contents: Contents) -> None:
        """Replace the contents of an existing file."""
        _require(filepath, "filepath")
        if contents is None:
            raise InvalidOption("contents", "required")
        data = _encode(contents)

        path = self.sandbox.normalize(filepath)
        real = self.sandbox.resolve(path)

        node = await self._stat_existing(path, real)
        if node.is_directory:
            raise PathIsDirectory(path)

        try:
            await self.writer.overwrite_file(real, data)
        except FilesystemError as e:
            _raise_mapped(e, {
                IOErrorKind.NOT_FOUND: PathDoesNotExist(path),
                IOErrorKind.IS_DIRECTORY: PathIsDirectory(path),
            })

        self.logger.debug("file_updated", path=path, size=len(data))
        self._notify(FsEventType.FILE_UPDATED, path)

    # Directories

    @_operation("create_directory")
    async def create_directory(self, dirpath: str) -> None:
        """Create a directory, and any missing parents. The path must be empty."""
        _require(dirpath, "dirpath")
        path = self.sandbox.normalize(dirpath)
        real = self.sandbox.resolve(path)

        if await self._exists(real):
            raise PathExists(path)

        try:
            await self.directories.create_directory(real)
        except FilesystemError as e:
            _raise_mapped(e, {
                IOErrorKind.EXISTS: PathExists(path),
                IOErrorKind.NOT_DIRECTORY: PathIsNotDirectory(posixpath.dirname(path)),
            })

        self.logger.debug("directory_created", path=path)
        self._notify(FsEventType.DIRECTORY_CREATED, path)

    @_operation("read_directory")
    async def read_directory(self, dirpath: str) -> List[DirectoryEntry]:
        """List a directory's children, sorted by name.

        ``""`` and ``"/"`` list the root. A child that disappears between
        the listing and its stat is left out of the result.
        """
        if dirpath is None:
            raise InvalidOption("dirpath", "required")

        path = self.sandbox.normalize(dirpath, allow_root=True)
        real = self.sandbox.resolve(path, allow_root=True)

        try:
            basenames = await self.directories.list_directory(real)
        except FilesystemError as e:
            _raise_mapped(e, {
                IOErrorKind.NOT_FOUND: PathDoesNotExist(path),
                IOErrorKind.NOT_DIRECTORY: PathIsNotDirectory(path),
            })

        # Children are addressed from the validated parent and the raw
        # basename only, never by resolving a client-influenced string again
        prefix = "" if path == "/" else path
        entries = await asyncio.gather(*(
            self._read_entry(prefix + "/" + basename, real / basename, basename)
            for basename in basenames
        ))
        return [entry for entry in entries if entry is not None]

    async def _read_entry(
        self,
        path: str,
        real: Path,
        basename: str
    ) -> Optional[DirectoryEntry]:
        try:
            node = await self.probe.stat(real)
        except FilesystemError as e:
            if e.kind is IOErrorKind.NOT_FOUND:
                self.logger.debug("directory_entry_vanished", path=path)
                return None
            raise e.cause from None

        return DirectoryEntry(
            path=path,
            basename=basename,
            is_directory=node.is_directory,
            is_file=node.is_file,
        )

    # Both kinds

    @_operation("move")
    async def move(self, from_path: str, to_path: str) -> None:
        """Move a file or directory by copying it and then removing the source.

        Publishes the created event for ``to_path`` before the removed event
        for ``from_path``.
        """
        _require(from_path, "from_path")
        _require(to_path, "to_path")

        source = self.sandbox.normalize(from_path)
        target = self.sandbox.normalize(to_path)

        if self.sandbox.is_path_within(target, source):
            raise InvalidOption(
                "to_path",
                "invalid",
                f"Cannot move {source} into itself",
            )

        source_real = self.sandbox.resolve(source)
        target_real = self.sandbox.resolve(target)

        node = await self._lstat_existing(source, source_real)
        if await self._exists(target_real):
            raise PathExists(target)

        await self._ensure_parent(target, target_real)

        try:
            await self.directories.copy_tree(source_real, target_real)
        except FilesystemError as e:
            _raise_mapped(e, {
                IOErrorKind.NOT_FOUND: PathDoesNotExist(source),
                IOErrorKind.EXISTS: PathExists(target),
            })

        self._notify(FsEventType.created(node.is_directory), target)

        try:
            await self.directories.remove_tree(source_real)
        except FilesystemError as e:
            _raise_mapped(e, {IOErrorKind.NOT_FOUND: PathDoesNotExist(source)})

        self.logger.debug("path_moved", from_path=source, to_path=target)
        self._notify(FsEventType.removed(node.is_directory), source)

    @_operation("remove")
    async def remove(self, path: str) -> None:
        """Remove a file, or a directory with everything in it."""
        _require(path, "path")
        logical = self.sandbox.normalize(path)
        real = self.sandbox.resolve(logical)

        node = await self._lstat_existing(logical, real)

        try:
            await self.directories.remove_tree(real)
        except FilesystemError as e:
            _raise_mapped(e, {IOErrorKind.NOT_FOUND: PathDoesNotExist(logical)})

        self.logger.debug("path_removed", path=logical)
        self._notify(FsEventType.removed(node.is_directory), logical)

    # Helpers

    async def _exists(self, real: Path, expected_type: Optional[NodeType] = None) -> bool:
        try:
            return await self.probe.path_exists(real, expected_type)
        except FilesystemError as e:
            raise e.cause from None

    async def _stat_existing(self, path: str, real: Path) -> NodeStat:
        try:
            return await self.probe.stat(real)
        except FilesystemError as e:
            _raise_mapped(e, {
                IOErrorKind.NOT_FOUND: PathDoesNotExist(path),
                IOErrorKind.NOT_DIRECTORY: PathDoesNotExist(path),
            })

    async def _lstat_existing(self, path: str, real: Path) -> NodeStat:
        """Kind of the node itself; a symlink counts as a file."""
        try:
            return await self.probe.lstat(real)
        except FilesystemError as e:
            _raise_mapped(e, {
                IOErrorKind.NOT_FOUND: PathDoesNotExist(path),
                IOErrorKind.NOT_DIRECTORY: PathDoesNotExist(path),
            })

    async def _ensure_parent(self, path: str, real: Path) -> None:
        parent = posixpath.dirname(path)
        try:
            await self.directories.ensure_directory(real.parent)
        except FilesystemError as e:
            _raise_mapped(e, {
                IOErrorKind.EXISTS: PathIsNotDirectory(parent),
                IOErrorKind.NOT_DIRECTORY: PathIsNotDirectory(parent),
            })
