from __future__ import annotations

from typing import Any, List

from .user import User

# NOTE: ``RoomMembership`` deliberately knows nothing about trivia so the
# lobby and the game rooms can share it.


class RoomMembership:
    """A group of users that can be messaged together."""

    def __init__(self, room_id: str):
        self.id = room_id
        self.members: List[User] = []

    # -------------------- Member management -------------------- #

    def join(self, user: User) -> None:
        """Move *user* into this room. Does nothing if they are already here."""
        if self.is_member(user):
            return

        # A user is only ever in one room at a time.
        if user.room is not None:
            user.room.leave(user)

        self.members.append(user)
        user.set_room(self)
        self.broadcast("user joined", user.nickname)
        user.send("user list", self.member_names())

    def leave(self, user: User) -> None:
        if not self.is_member(user):
            return
        self.members.remove(user)
        user.leave_room()
        self.broadcast("user left", user.nickname)

    def is_member(self, user: User) -> bool:
        return any(u is user for u in self.members)

    def member_names(self) -> List[str]:
        return [u.nickname for u in self.members]

    # -------------------- Broadcasting helpers -------------------- #

    def broadcast(self, event: str, data: Any = None) -> None:
        """Send *event* to every member of the room."""
        for user in list(self.members):
            user.send(event, data)

    def broadcast_message(self, user: User, text: str) -> None:
        """Relay a chat line from *user* to everyone in the room."""
        self.broadcast("message", {"nickname": user.nickname, "text": text})


__all__ = ["RoomMembership"]
