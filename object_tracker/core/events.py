#!/usr/bin/env python3
"""
Event definitions and event bus for the tracking loop.

Events are how the controller and camera report state changes.
The EventBus allows decoupled event handling.
"""

import logging
import threading
import time
from collections import deque
from enum import Enum, auto
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# EVENT TYPES
# =============================================================================

class EventType(Enum):
    """All event types in the app."""

    # Target lifecycle
    TARGET_SEEDED = auto()         # User tapped, new seed observation
    TRACK_UPDATED = auto()         # Confident result moved the highlight
    TRACK_LOW_CONFIDENCE = auto()  # Result below threshold, highlight left alone
    TARGET_RESET = auto()          # Reset button cleared the target

    # System events
    SESSION_STARTED = auto()       # Camera session running
    SESSION_STOPPED = auto()       # Camera session stopped
    CAMERA_ERROR = auto()          # Camera could not be opened or read
    TRACKER_ERROR = auto()         # Tracking request failed


# =============================================================================
# EVENT WRAPPER
# =============================================================================

@dataclass
class Event:
    """Wrapper for events with metadata."""
    type: EventType
    timestamp: float
    data: Dict[str, Any] = field(default_factory=dict)
    source: str = ""  # Component that generated the event


# =============================================================================
# EVENT BUS
# =============================================================================

EventHandler = Callable[[Event], None]


class EventBus:
    """
    Synchronous publish/subscribe hub.

    Handlers run on the emitting thread (camera thread or UI thread), so
    they must be quick. A failing handler is logged and skipped. The most
    recent events are kept for debugging.
    """

    def __init__(self, history_size: int = 100):
        self._handlers: Dict[Optional[EventType], List[EventHandler]] = {}
        self._history: Deque[Event] = deque(maxlen=history_size)
        self._lock = threading.RLock()
        self._closed = False

    def subscribe(self, event_type: Optional[EventType], handler: EventHandler) -> None:
        """Register handler for event_type, or for every event when None."""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: Optional[EventType], handler: EventHandler) -> bool:
        """Returns True if the handler was registered."""
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler not in handlers:
                return False
            handlers.remove(handler)
            return True

    def emit(self, event: Event) -> None:
        if self._closed:
            return

        with self._lock:
            self._history.append(event)
            handlers = self._handlers.get(None, []) + self._handlers.get(event.type, [])

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler error for {event.type.name}: {e}")

    def emit_simple(self, event_type: EventType, source: str = "", **data) -> Event:
        """Build an Event stamped with the current time, emit it and return it."""
        event = Event(type=event_type, timestamp=time.time(), data=data, source=source)
        self.emit(event)
        return event

    def get_history(self, event_type: Optional[EventType] = None, limit: int = 50) -> List[Event]:
        """Recent events, newest first."""
        with self._lock:
            events = [e for e in self._history if event_type is None or e.type == event_type]
        return events[::-1][:limit]

    def shutdown(self) -> None:
        """Stop delivering events; later emits are dropped."""
        self._closed = True


# =============================================================================
# EVENT LOGGING HANDLER
# =============================================================================

class EventLogger:
    """Handler that logs all events."""

    def __init__(self, log_level: int = logging.INFO):
        self.log_level = log_level
        self._logger = logging.getLogger("object_tracker.events")

    def __call__(self, event: Event) -> None:
        self._logger.log(
            self.log_level,
            f"[{event.type.name}] {event.source}: {event.data}"
        )
