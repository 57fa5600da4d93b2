"""Bridge between a watchdog observer and the event bus.

While the bridge is active it is the only source of change events: it
suppresses the bus for everyone else and publishes what it observes on the
real filesystem, translated to logical paths.
"""
import asyncio
import os
import time
from typing import Callable, Dict, List, Optional, Tuple

from aiofiles.ospath import wrap
from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from rootfs.core.types import FsEventType
from rootfs.infrastructure.events import EventBus
from rootfs.infrastructure.filesystem.path_sandbox import PathSandbox
from rootfs.infrastructure.logging import get_logger

logger = get_logger(__name__)

_LAST_SEEN_LIMIT = 4096

# Events a single open-write-close burst may produce for one file
_WRITE_EVENTS = (FsEventType.FILE_CREATED, FsEventType.FILE_UPDATED)

ObserverFactory = Callable[[], BaseObserver]


class _ForwardingHandler(FileSystemEventHandler):
    """Hands observer-thread events over to the bridge's event loop."""

    def __init__(self, bridge: "WatchBridge", loop: asyncio.AbstractEventLoop):
        super().__init__()
        self._bridge = bridge
        self._loop = loop

    def on_any_event(self, event: FileSystemEvent) -> None:
        dest_path = getattr(event, "dest_path", "") or None
        self._loop.call_soon_threadsafe(
            self._bridge.dispatch,
            event.event_type,
            event.is_directory,
            os.fsdecode(event.src_path),
            os.fsdecode(dest_path) if dest_path else None,
        )


class WatchBridge:
    """Owns the watcher handle and the suppression state of the bus."""

    def __init__(
        self,
        sandbox: PathSandbox,
        bus: EventBus,
        settle_seconds: float = 0.2,
        observer_factory: Optional[ObserverFactory] = None,
    ):
        self.sandbox = sandbox
        self.bus = bus
        self.settle_seconds = settle_seconds
        self._observer_factory = observer_factory or Observer
        self._observer: Optional[BaseObserver] = None
        self._active = False
        self._last_seen: Dict[str, Tuple[FsEventType, float]] = {}

    @classmethod
    def polling(
        cls,
        sandbox: PathSandbox,
        bus: EventBus,
        settle_seconds: float = 0.2,
        poll_interval: float = 1.0,
    ) -> "WatchBridge":
        return cls(
            sandbox,
            bus,
            settle_seconds=settle_seconds,
            observer_factory=lambda: PollingObserver(timeout=poll_interval),
        )

    @property
    def active(self) -> bool:
        return self._active

    async def start(self) -> None:
        """Start watching the root. Returns once the initial scan is ready."""
        if self._observer is not None:
            return

        loop = asyncio.get_running_loop()
        # Operations stop publishing from here on, even before ready
        self.bus.suppress()

        observer = self._observer_factory()
        observer.schedule(
            _ForwardingHandler(self, loop),
            str(self.sandbox.root),
            recursive=True,
        )
        self._observer = observer

        try:
            # Emitters set up their watches (or initial snapshot) inside start()
            await wrap(observer.start)()
        except BaseException:
            self._observer = None
            self.bus.release()
            raise

        self._last_seen.clear()
        self._active = True
        logger.info("watcher_started", observer=type(observer).__name__)

    async def stop(self) -> None:
        observer = self._observer
        if observer is None:
            return

        self._active = False
        self._observer = None
        try:
            observer.stop()
            await wrap(observer.join)()
        finally:
            self.bus.release()
            logger.info("watcher_stopped")

    def dispatch(
        self,
        raw_type: str,
        is_directory: bool,
        src_path: str,
        dest_path: Optional[str] = None,
    ) -> None:
        """Translate one raw watchdog event and publish the result.

        Runs on the event loop. Events that arrive while inactive are
        dropped. Repeats of one write burst are merged until the writer
        closes the file or the settle window runs out.
        """
        if not self._active:
            return

        if raw_type == EVENT_TYPE_CLOSED and not is_directory:
            self._end_write(src_path)
            return

        for event_type, real_path in self._translate(
            raw_type, is_directory, src_path, dest_path
        ):
            path = self.sandbox.to_logical(real_path)
            if path is None:
                continue
            if self._is_repeat(event_type, path):
                continue
            self.bus.publish(event_type, path)

    @staticmethod
    def _translate(
        raw_type: str,
        is_directory: bool,
        src_path: str,
        dest_path: Optional[str],
    ) -> List[Tuple[FsEventType, str]]:
        if raw_type == EVENT_TYPE_CREATED:
            return [(FsEventType.created(is_directory), src_path)]
        if raw_type == EVENT_TYPE_DELETED:
            return [(FsEventType.removed(is_directory), src_path)]
        if raw_type == EVENT_TYPE_MODIFIED and not is_directory:
            return [(FsEventType.FILE_UPDATED, src_path)]
        if raw_type == EVENT_TYPE_MOVED:
            events = [(FsEventType.removed(is_directory), src_path)]
            if dest_path:
                events.append((FsEventType.created(is_directory), dest_path))
            return events
        # opened and directory modification carry no change of their own
        return []

    def _is_repeat(self, event_type: FsEventType, path: str) -> bool:
        now = time.monotonic()
        if len(self._last_seen) > _LAST_SEEN_LIMIT:
            self._forget_before(now - self.settle_seconds)
        previous = self._last_seen.get(path)
        self._last_seen[path] = (event_type, now)

        if previous is None:
            return False

        previous_type, seen_at = previous
        if now - seen_at > self.settle_seconds:
            return False
        if previous_type == event_type:
            return True
        if (
            event_type is FsEventType.FILE_UPDATED
            and previous_type is FsEventType.FILE_CREATED
        ):
            # Keep the creation as the reference point for the write burst
            self._last_seen[path] = previous
            return True
        return False

    def _end_write(self, real_path: str) -> None:
        """A closed write handle ends the burst; the next write is a new change."""
        path = self.sandbox.to_logical(real_path)
        if path is None:
            return
        previous = self._last_seen.get(path)
        if previous is not None and previous[0] in _WRITE_EVENTS:
            del self._last_seen[path]

    def _forget_before(self, cutoff: float) -> None:
        self._last_seen = {
            path: seen for path, seen in self._last_seen.items() if seen[1] >= cutoff
        }
