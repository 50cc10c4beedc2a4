"""The set of active game rooms."""
from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional

from .config import Settings
from .constants import ROOM_ID_ALPHABET, ROOM_ID_LENGTH
from .game_room import GameRoom
from .lifecycle import LifecycleBus, RoomEvent, RoomEventKind
from .question_source import QuestionSupplier
from .schemas import RoomConfiguration, RoomSummary

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Maps room ids to live ``GameRoom`` objects and announces every change on the bus."""

    def __init__(
        self,
        bus: LifecycleBus,
        supplier: QuestionSupplier,
        settings: Settings,
        rng: Optional[random.Random] = None,
    ):
        self.bus = bus
        self.supplier = supplier
        self.settings = settings
        self._rng = rng or random.Random()
        self._rooms: Dict[str, GameRoom] = {}

    def generate_id(self) -> str:
        """Generate a short room id not used by any active room."""
        while True:
            room_id = "".join(self._rng.choice(ROOM_ID_ALPHABET) for _ in range(ROOM_ID_LENGTH))
            if room_id not in self._rooms:
                return room_id

    def create_room(
        self,
        name: str,
        delete_on_empty: bool = True,
        config: Optional[RoomConfiguration] = None,
    ) -> GameRoom:
        """Create, register and start a new room. Must run inside the event loop."""
        room = GameRoom(
            self.generate_id(),
            name,
            config or RoomConfiguration(),
            registry=self,
            supplier=self.supplier,
            settings=self.settings,
            delete_on_empty=delete_on_empty,
        )
        self._rooms[room.id] = room
        logger.info(f"Created room {room.id} ({name!r}).")

        self.bus.publish(RoomEvent(RoomEventKind.CREATED, room.summary()))
        room.start()
        return room

    def delete_room(self, room: GameRoom) -> None:
        if self._rooms.get(room.id) is not room:
            return
        room.cancel_timer()
        del self._rooms[room.id]
        logger.info(f"Deleted room {room.id}.")
        self.bus.publish(RoomEvent(RoomEventKind.DELETED, room.summary()))

    def notify_updated(self, room: GameRoom) -> None:
        if self._rooms.get(room.id) is room:
            self.bus.publish(RoomEvent(RoomEventKind.UPDATED, room.summary()))

    def get_room(self, room_id: str) -> Optional[GameRoom]:
        return self._rooms.get(room_id)

    def list_room_ids(self) -> List[str]:
        return list(self._rooms)

    def list_rooms(self) -> List[GameRoom]:
        return list(self._rooms.values())

    def summaries(self) -> List[RoomSummary]:
        return [room.summary() for room in self._rooms.values()]


__all__ = ["RoomRegistry"]
