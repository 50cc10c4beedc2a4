"""The lobby: where players browse rooms before joining one."""
from __future__ import annotations

from typing import TYPE_CHECKING

from .constants import LOBBY_ID
from .lifecycle import LifecycleBus, RoomEvent, RoomEventKind
from .room import RoomMembership
from .user import User

if TYPE_CHECKING:
    from .registry import RoomRegistry

_EVENT_NAMES = {
    RoomEventKind.CREATED: "new room",
    RoomEventKind.UPDATED: "update room",
    RoomEventKind.DELETED: "delete room",
}


class Lobby(RoomMembership):
    """Mirrors every room lifecycle event to the users browsing the room list."""

    def __init__(self, registry: "RoomRegistry", bus: LifecycleBus):
        super().__init__(LOBBY_ID)
        self.registry = registry
        bus.subscribe(self.on_room_event)

    def join(self, user: User) -> None:
        if self.is_member(user):
            return
        super().join(user)
        self.send_room_list(user)
        user.send("entered lobby")

    def leave(self, user: User) -> None:
        if not self.is_member(user):
            return
        super().leave(user)
        user.send("left lobby")

    def send_room_list(self, user: User) -> None:
        user.send("room list", [s.to_wire() for s in self.registry.summaries()])

    def on_room_event(self, event: RoomEvent) -> None:
        self.broadcast(_EVENT_NAMES[event.kind], event.summary.to_wire())


__all__ = ["Lobby"]
