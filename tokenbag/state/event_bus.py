"""
Event bus for token bag state changes.

Provides decoupled communication between the session and front ends.
Components subscribe to events and react without tight coupling.

Usage:
    from .event_bus import EventBus, EventType

    bus = EventBus()
    bus.on(EventType.TOKEN_DRAWN, my_handler)

    # Emit (in the manager when state changes)
    bus.emit(EventType.TOKEN_DRAWN, token="W", draws=1, limit=4)

    def my_handler(event: GameEvent):
        print(f"Drew {event.data['token']}")
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Events published by a bag session."""

    # Test lifecycle
    TEST_STARTED = "test.started"
    TEST_EXHAUSTED = "test.exhausted"

    # Draws
    TOKEN_DRAWN = "token.drawn"
    RISK_ACTIVATED = "risk.activated"

    # Modifiers
    BLACK_SPENT = "black.spent"
    CONFUSION_ARMED = "confusion.armed"
    CONFUSION_CONSUMED = "confusion.consumed"

    # Session
    CONFIG_CHANGED = "config.changed"
    SESSION_RESET = "session.reset"


@dataclass
class GameEvent:
    """
    Event payload for the event bus.

    Attributes:
        type: The event type (from EventType enum)
        data: Event-specific payload as dict
        test_number: Which test of the session the event belongs to
        timestamp: When the event was emitted
    """

    type: EventType
    data: dict = field(default_factory=dict)
    test_number: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


# Type alias for event handlers
EventHandler = Callable[[GameEvent], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on emit(), in subscription order.
    A failing listener is logged and skipped; the others still run.
    """

    def __init__(self, history_limit: int = 100):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[GameEvent] = []
        self._history_limit = history_limit

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The type of event to listen for
            handler: Callback function that receives GameEvent
        """
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def on_all(self, handler: EventHandler) -> None:
        """Subscribe one handler to every event type."""
        for event_type in EventType:
            self.on(event_type, handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from an event type."""
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(self, event_type: EventType, test_number: int = 0, **data) -> GameEvent:
        """
        Emit an event to all subscribers.

        Args:
            event_type: The type of event
            test_number: Test counter of the emitting session
            **data: Event-specific data

        Returns:
            The emitted GameEvent (for chaining/testing)
        """
        event = GameEvent(type=event_type, data=data, test_number=test_number)

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception:
                logger.exception("Error in handler for %s", event_type.value)

        return event

    def clear(self) -> None:
        """Clear all listeners. Useful for testing."""
        self._listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[GameEvent]:
        """
        Get recent event history.

        Args:
            event_type: Filter by type, or None for all events
        """
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        """Get number of listeners for an event type."""
        return len(self._listeners.get(event_type, []))
