from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ..game_logic import handle_connect, handle_disconnect, handle_ws_message
from ..schemas import ClientFrame
from ..state import ServerState
from ..user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["ws"])


async def _pump_outbox(user: User, ws: WebSocket) -> None:
    """Write queued frames to the socket in order until the connection goes away."""
    try:
        while True:
            frame = await user.outbox.get()
            await ws.send_json(frame)
    except (WebSocketDisconnect, RuntimeError) as exc:
        logger.debug(f"Stopped writing to {user!r}: {exc!r}")


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    state: ServerState = ws.app.state.trivia

    user = User()
    handle_connect(state, user)
    writer = asyncio.create_task(_pump_outbox(user, ws))

    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                logger.debug(f"Ignoring binary frame from {user!r}")
                continue
            try:
                frame = ClientFrame.model_validate_json(raw)
            except ValidationError:
                logger.debug(f"Ignoring malformed frame from {user!r}")
                continue
            handle_ws_message(state, user, frame)
    except WebSocketDisconnect:
        pass
    finally:
        handle_disconnect(state, user)
        writer.cancel()
