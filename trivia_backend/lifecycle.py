"""Publish/subscribe channel for room lifecycle changes.

Consumers (the lobby, the question supplier's token cache) only ever see a
``RoomSummary`` snapshot, never the room object itself.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List

from .schemas import RoomSummary

logger = logging.getLogger(__name__)


class RoomEventKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class RoomEvent:
    kind: RoomEventKind
    summary: RoomSummary


Subscriber = Callable[[RoomEvent], None]


class LifecycleBus:
    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, event: RoomEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Room event subscriber failed on {event.kind.value} {event.summary.id}")


__all__ = ["RoomEventKind", "RoomEvent", "Subscriber", "LifecycleBus"]
