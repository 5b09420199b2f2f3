"""
Discrete game events and a synchronous subscriber bus.

Events flow one way, out of the simulation: audio players and UI
notifiers subscribe to the bus, and nothing they do feeds back into city
state. A failing subscriber is logged and skipped.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    BUILD = "build"
    DEMOLISH = "demolish"
    ERROR = "error"
    GOAL_SUCCESS = "goal_success"
    NOTIFICATION = "notification"


@dataclass(frozen=True)
class GameEvent:
    """One discrete outcome of a player action or tick."""

    kind: EventKind
    message: str = ""
    day: int = 1
    x: int | None = None
    y: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "day": self.day,
            "x": self.x,
            "y": self.y,
        }


Subscriber = Callable[[GameEvent], None]


class EventBus:
    """Delivers each event to every subscriber and keeps a short history."""

    def __init__(self, history_size: int = 100) -> None:
        self._subscribers: list[Subscriber] = []
        self.history: deque[GameEvent] = deque(maxlen=history_size)

    def subscribe(self, handler: Subscriber) -> None:
        self._subscribers.append(handler)

    def unsubscribe(self, handler: Subscriber) -> None:
        try:
            self._subscribers.remove(handler)
        except ValueError:
            pass

    def publish(self, event: GameEvent) -> None:
        self.history.append(event)
        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception:
                logger.warning("Event subscriber %r failed on %s", handler, event.kind.value, exc_info=True)

    def recent(self, limit: int | None = None) -> list[GameEvent]:
        events = list(self.history)
        return events if limit is None else events[-limit:]
