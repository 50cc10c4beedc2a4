"""Connected players and the nickname directory."""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .room import RoomMembership

logger = logging.getLogger(__name__)


class User:
    """A single connection to the server.

    Outbound frames are queued on ``outbox`` and written by the websocket
    endpoint, so sending never yields control in the middle of a room update.
    """

    def __init__(self, nickname: str = ""):
        self.nickname = nickname
        self.room: Optional["RoomMembership"] = None
        self.outbox: asyncio.Queue[dict] = asyncio.Queue()

    def __repr__(self) -> str:
        return f"User({self.nickname or '<nameless>'!r})"

    def send(self, event: str, data: Any = None) -> None:
        self.outbox.put_nowait({"type": event, "data": data})

    def set_room(self, room: Optional["RoomMembership"]) -> None:
        self.room = room

    def leave_room(self) -> None:
        self.set_room(None)


class NicknameStatus(str, Enum):
    GOOD = "good nickname"
    TAKEN = "nickname taken"
    INVALID = "invalid nickname"


class UserDirectory:
    """Every connected user, plus room requests made before a nickname was chosen."""

    def __init__(self, max_nickname_length: int = 16):
        self.max_nickname_length = max_nickname_length
        self.users: List[User] = []
        self._pending_joins: Dict[User, str] = {}

    def add(self, user: User) -> None:
        self.users.append(user)

    def remove(self, user: User) -> None:
        if user in self.users:
            self.users.remove(user)
        self._pending_joins.pop(user, None)

    def is_nickname_valid(self, nickname: Any) -> bool:
        return isinstance(nickname, str) and 1 <= len(nickname) <= self.max_nickname_length

    def is_nickname_taken(self, nickname: str) -> bool:
        wanted = nickname.lower()
        return any(u.nickname.lower() == wanted for u in self.users)

    def claim_nickname(self, user: User, nickname: Any) -> NicknameStatus:
        """Give *user* its nickname. A nickname can only be set once per connection."""
        if user.nickname or not self.is_nickname_valid(nickname):
            return NicknameStatus.INVALID
        if self.is_nickname_taken(nickname):
            return NicknameStatus.TAKEN
        user.nickname = nickname
        return NicknameStatus.GOOD

    def remember_join(self, user: User, room_id: str) -> None:
        logger.info(f"Remembering that a nameless user wants to join {room_id}.")
        self._pending_joins[user] = room_id

    def pop_pending_join(self, user: User) -> Optional[str]:
        return self._pending_joins.pop(user, None)


__all__ = ["User", "NicknameStatus", "UserDirectory"]
