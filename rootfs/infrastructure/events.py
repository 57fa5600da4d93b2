"""Per-instance publish/subscribe channel for filesystem change events."""
from collections import defaultdict
from typing import DefaultDict, List, Union

from rootfs.core.errors import InvalidOption
from rootfs.core.types import EventHandler, FsEvent, FsEventType
from rootfs.infrastructure.logging import get_logger

logger = get_logger(__name__)


def coerce_event_type(event_type: Union[FsEventType, str]) -> FsEventType:
    try:
        return FsEventType(event_type)
    except ValueError:
        raise InvalidOption(
            "event_type",
            "invalid",
            f"Unknown event type: {event_type!r}",
        ) from None


class EventBus:
    """Fans events out to subscribers, synchronously and in subscription order.

    ``notify`` is what filesystem operations use; it does nothing while the
    bus is suppressed. ``publish`` always delivers and is reserved for the
    authoritative source of events (the watch bridge while it runs).
    Subscriptions last for the lifetime of the bus.
    """

    def __init__(self):
        self._subscribers: DefaultDict[FsEventType, List[EventHandler]] = defaultdict(list)
        self._suppressed = False

    @property
    def suppressed(self) -> bool:
        return self._suppressed

    def suppress(self) -> None:
        self._suppressed = True

    def release(self) -> None:
        self._suppressed = False

    def subscribe(self, event_type: Union[FsEventType, str], handler: EventHandler) -> None:
        if not callable(handler):
            raise InvalidOption("handler", "invalid", "Handler must be callable")
        self._subscribers[coerce_event_type(event_type)].append(handler)

    def publish(self, event_type: FsEventType, path: str) -> int:
        """Deliver an event to every subscriber of its type.

        Handler exceptions propagate to the caller.

        Returns:
            Number of handlers called
        """
        event = FsEvent(type=FsEventType(event_type), path=path)
        handlers = list(self._subscribers.get(event.type, ()))
        for handler in handlers:
            handler(event)

        logger.debug(
            "fs_event_published",
            event_type=event.type.value,
            path=path,
            handlers=len(handlers),
        )
        return len(handlers)

    def notify(self, event_type: FsEventType, path: str) -> int:
        """Publish unless suppressed."""
        if self._suppressed:
            return 0
        return self.publish(event_type, path)
