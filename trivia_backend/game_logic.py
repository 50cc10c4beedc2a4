"""Websocket command handling.

These functions translate client frames into calls on the lobby, rooms and
user directory. They operate only on in-memory objects held by
``ServerState``; the websocket router feeds them frames without knowing
anything about trivia.
"""
from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from .game_room import GameRoom
from .schemas import ClientFrame, CreateRoomRequest, RoomConfiguration
from .state import ServerState
from .user import NicknameStatus, User

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Connection lifecycle
# ---------------------------------------------------------------------------

def handle_connect(state: ServerState, user: User) -> None:
    state.users.add(user)
    user.send("need nickname")
    logger.info("A user connected.")


def handle_disconnect(state: ServerState, user: User) -> None:
    logger.info(f"{user.nickname or '<nameless user>'} disconnected.")
    state.users.remove(user)
    if user.room is not None:
        user.room.leave(user)


def handle_set_nickname(state: ServerState, user: User, nickname: Any) -> None:
    status = state.users.claim_nickname(user, nickname)
    user.send(status.value)
    if status is not NicknameStatus.GOOD:
        return

    logger.info(f"Setting nickname to {user.nickname}.")
    pending_id = state.users.pop_pending_join(user)
    room = state.registry.get_room(pending_id) if pending_id else None
    if room is not None:
        room.join(user)
    else:
        state.lobby.join(user)


# ---------------------------------------------------------------------------
# Room navigation
# ---------------------------------------------------------------------------

def handle_join_room(state: ServerState, user: User, room_id: Any) -> None:
    if not isinstance(room_id, str):
        return
    logger.info(f"{user.nickname} requested to join room {room_id}.")
    room = state.registry.get_room(room_id)
    if room is not None:
        room.join(user)


def handle_leave_room(state: ServerState, user: User) -> None:
    if user.room is None or user.room is state.lobby:
        return
    logger.info(f"{user.nickname} is leaving room {user.room.id}.")
    state.lobby.join(user)


def handle_create_room(state: ServerState, user: User, data: Any) -> None:
    try:
        req = CreateRoomRequest.model_validate(data if isinstance(data, dict) else {})
    except ValidationError as exc:
        logger.info(f"Ignoring invalid room request from {user.nickname}: {exc.error_count()} error(s)")
        return

    # An unknown category id means "any category".
    category = state.supplier.get_category(req.category_id) if req.category_id is not None else None
    config = RoomConfiguration(
        category=category,
        difficulty=req.difficulty,
        max_seconds=req.max_seconds,
        can_skip_questions=req.can_skip_questions,
        question_count=req.question_count,
    )
    logger.info(f"{user.nickname} is creating a new room with config {config.to_wire()}")

    room = state.registry.create_room(req.name, delete_on_empty=True, config=config)
    room.join(user)


# ---------------------------------------------------------------------------
# In-room actions
# ---------------------------------------------------------------------------

def handle_message(user: User, text: Any) -> None:
    if isinstance(text, str) and text and user.room is not None:
        user.room.broadcast_message(user, text)


def handle_get_category_list(state: ServerState, user: User) -> None:
    user.send("category list", [c.to_wire() for c in state.supplier.get_categories()])


def handle_answer(user: User, answer_index: Any) -> None:
    if isinstance(user.room, GameRoom):
        user.room.submit_answer(user, answer_index)


# ---------------------------------------------------------------------------
# Primary dispatcher used by websocket endpoint
# ---------------------------------------------------------------------------

def handle_ws_message(state: ServerState, user: User, frame: ClientFrame) -> None:
    msg_type = frame.type

    # Until a nickname is set, the only thing a user can do is pick one
    # (or say which room they want to land in once they have).
    if not user.nickname:
        if msg_type == "set nickname":
            handle_set_nickname(state, user, frame.data)
        elif msg_type == "join room" and isinstance(frame.data, str):
            state.users.remember_join(user, frame.data)
        return

    if msg_type == "answer":
        handle_answer(user, frame.data)
    elif msg_type == "message":
        handle_message(user, frame.data)
    elif msg_type == "join room":
        handle_join_room(state, user, frame.data)
    elif msg_type == "leave room":
        handle_leave_room(state, user)
    elif msg_type == "create room":
        handle_create_room(state, user, frame.data)
    elif msg_type == "get category list":
        handle_get_category_list(state, user)
    elif msg_type == "set nickname":
        handle_set_nickname(state, user, frame.data)
    else:
        logger.debug(f"Ignoring unknown frame type {msg_type!r} from {user.nickname}")


__all__ = [
    "handle_connect",
    "handle_disconnect",
    "handle_set_nickname",
    "handle_join_room",
    "handle_leave_room",
    "handle_create_room",
    "handle_message",
    "handle_get_category_list",
    "handle_answer",
    "handle_ws_message",
]
