from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .logging_setup import setup_logging
from .question_source import QuestionSupplierError
from .routers import rooms as rooms_router
from .routers import websockets as ws_router
from .schemas import RoomConfiguration
from .state import build_state

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, http_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    """Build the FastAPI application.

    *http_client* replaces the client used to talk to the trivia API; tests
    pass one backed by ``httpx.MockTransport``.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state = build_state(settings, http_client)
        app.state.trivia = state

        try:
            await state.supplier.load_categories()
            logger.info("Question categories loaded.")
        except QuestionSupplierError as exc:
            # Rooms still work without categories; they just can't be filtered by one.
            logger.error(f"Could not load question categories: {exc}")

        if settings.create_default_room:
            state.registry.create_room(
                settings.default_room_name,
                delete_on_empty=False,
                config=RoomConfiguration(can_skip_questions=settings.default_room_can_skip),
            )

        logger.info(f"Trivia server active on port {settings.port}.")
        try:
            yield
        finally:
            await state.close()

    # -----------------------------
    # FastAPI app instance
    # -----------------------------

    app = FastAPI(title="Trivia Rooms Backend", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(rooms_router.router)
    app.include_router(ws_router.router)

    return app


app = create_app()

__all__ = ["app", "create_app"]
