"""Centralised in-memory runtime state.

Everything the server shares across connections is built once at startup by
``build_state`` and hung off ``app.state.trivia``; nothing lives in module
globals, so tests can build as many independent servers as they like.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from .config import Settings
from .lifecycle import LifecycleBus
from .lobby import Lobby
from .question_source import QuestionSupplier
from .registry import RoomRegistry
from .user import UserDirectory


@dataclass
class ServerState:
    settings: Settings
    bus: LifecycleBus
    supplier: QuestionSupplier
    registry: RoomRegistry
    lobby: Lobby
    users: UserDirectory

    async def close(self) -> None:
        for room in self.registry.list_rooms():
            room.stop()
        await self.supplier.close()


def build_state(settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> ServerState:
    bus = LifecycleBus()
    supplier = QuestionSupplier(settings.trivia_api_url, timeout=settings.http_timeout, client=http_client)
    supplier.attach(bus)
    registry = RoomRegistry(bus, supplier, settings)
    return ServerState(
        settings=settings,
        bus=bus,
        supplier=supplier,
        registry=registry,
        lobby=Lobby(registry, bus),
        users=UserDirectory(settings.nickname_max_length),
    )


__all__ = ["ServerState", "build_state"]
