"""Progress channel between the active run and its observers.

There is a single producer (the run being executed) so delivery is
synchronous and ordered: publish() returns once every subscriber has
handled the event. An exception raised by a subscriber propagates out
of publish() and aborts the run.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from typing import Union

from structbench.models.progress import RunCompleteEvent, TestProgress

ChannelEvent = Union[TestProgress, RunCompleteEvent]
EventHandler = Callable[[ChannelEvent], None]


class ProgressChannel:
    """Ordered pub/sub for progress and run-complete events.

    Keeps a bounded history of recent events for late observers.
    """

    def __init__(self, history_size: int = 1000) -> None:
        self._subscribers: list[tuple[type | None, EventHandler]] = []
        self._history: deque[ChannelEvent] = deque(maxlen=history_size)

    def subscribe(
        self,
        handler: EventHandler,
        event_type: type | None = None,
    ) -> EventHandler:
        """Register handler for events of event_type (None for all events)."""
        self._subscribers.append((event_type, handler))
        return handler

    def unsubscribe(self, handler: EventHandler) -> bool:
        """Remove every registration of handler. Returns True if one was found."""
        before = len(self._subscribers)
        self._subscribers = [(t, h) for t, h in self._subscribers if h is not handler]
        return len(self._subscribers) != before

    def publish(self, event: ChannelEvent) -> None:
        """Record event in history and deliver it to matching subscribers in order."""
        self._history.append(event)
        for event_type, handler in list(self._subscribers):
            if event_type is None or isinstance(event, event_type):
                handler(event)

    def history(
        self,
        event_type: type | None = None,
        limit: int | None = None,
    ) -> list[ChannelEvent]:
        """Return recent events, oldest first, optionally filtered by type."""
        events = [
            e for e in self._history if event_type is None or isinstance(e, event_type)
        ]
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events
