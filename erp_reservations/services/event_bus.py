"""
Event bus
In-process publish/subscribe for room, reservation and booking state changes.
Handlers run synchronously inside the publishing request, after the commit.
"""
from typing import Callable, Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
import logging
import threading
import uuid

from erp_reservations.config import settings
from erp_reservations.models.events import EventType

logger = logging.getLogger(__name__)

Handler = Callable[["Event"], None]


@dataclass
class Event:
    event_type: EventType
    timestamp: datetime
    data: Dict[str, Any]
    source: str  # publishing service
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class EventBus:
    """
    Process-wide event bus

    One instance per process; constructing it again returns the same bus.
    Recently published events are kept for inspection, up to
    EVENT_HISTORY_SIZE of them.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._handlers = {}
                    instance._history = deque(maxlen=settings.EVENT_HISTORY_SIZE)
                    instance._handlers_lock = threading.Lock()
                    cls._instance = instance
        return cls._instance

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        event_type = EventType(event_type)
        with self._handlers_lock:
            handlers = self._handlers.setdefault(event_type, [])
            if handler in handlers:
                return
            handlers.append(handler)
        logger.debug(f"{handler.__name__} subscribed to {event_type.value}")

    def unsubscribe(self, event_type: EventType, handler: Handler) -> None:
        with self._handlers_lock:
            handlers = self._handlers.get(EventType(event_type), [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(self, event: Event) -> int:
        """
        Deliver an event to its subscribers

        Returns the number of handlers that failed. A failure is logged and
        never reaches the publisher, whose transaction is already committed.
        """
        self._history.append(event)
        with self._handlers_lock:
            handlers = list(self._handlers.get(event.event_type, ()))

        failures = 0
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                failures += 1
                logger.error(
                    f"Handler {handler.__name__} failed on {event.event_type.value} "
                    f"({event.event_id}): {e}",
                    exc_info=True
                )
        return failures

    def get_history(self, event_type: Optional[EventType] = None, limit: int = 50) -> List[Event]:
        """Most recent events first"""
        events = [e for e in reversed(self._history)
                  if event_type is None or e.event_type == event_type]
        return events[:limit]

    def get_subscribers(self, event_type: Optional[EventType] = None) -> Dict[EventType, List[str]]:
        with self._handlers_lock:
            if event_type is not None:
                return {event_type: [h.__name__ for h in self._handlers.get(event_type, [])]}
            return {et: [h.__name__ for h in hs] for et, hs in self._handlers.items()}

    def clear_subscribers(self) -> None:
        with self._handlers_lock:
            self._handlers.clear()

    def clear_history(self) -> None:
        self._history.clear()


event_bus = EventBus()
