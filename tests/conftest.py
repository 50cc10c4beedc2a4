import asyncio
import random
from typing import Any, List, Optional

import httpx
import pytest

from trivia_backend.config import Settings
from trivia_backend.lifecycle import LifecycleBus, RoomEvent
from trivia_backend.lobby import Lobby
from trivia_backend.registry import RoomRegistry
from trivia_backend.schemas import Category, TriviaQuestion
from trivia_backend.state import ServerState
from trivia_backend.user import User, UserDirectory


CATEGORIES = [
    {"id": 9, "name": "General Knowledge"},
    {"id": 19, "name": "Science: Mathematics"},
]

QUESTION_RECORD = {
    "category": "Science: Mathematics",
    "type": "multiple",
    "difficulty": "easy",
    "question": "What is 2 + 2?",
    "correct_answer": "4",
    "incorrect_answers": ["3", "5", "22"],
}


def make_question(difficulty: str = "medium", correct: int = 0) -> TriviaQuestion:
    return TriviaQuestion(
        text="What is 2 + 2?",
        answers=["4", "3", "5", "22"],
        correct_answer_index=correct,
        category_name="Science: Mathematics",
        difficulty=difficulty,
    )


def drain(user: User) -> List[dict]:
    """Pop every frame queued for *user*."""
    frames = []
    while not user.outbox.empty():
        frames.append(user.outbox.get_nowait())
    return frames


def payloads(frames: List[dict], event: str) -> List[Any]:
    return [f["data"] for f in frames if f["type"] == event]


async def settle(rounds: int = 5) -> None:
    """Let pending tasks (question fetches) run to completion."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeSupplier:
    """Stands in for QuestionSupplier: hands out queued questions or errors."""

    def __init__(self):
        self.results: List[Any] = []
        self.calls: List[str] = []
        self.forgotten: List[str] = []
        self.gate: Optional[asyncio.Event] = None
        self.categories = [Category(**c) for c in CATEGORIES]

    async def fetch_question(self, room) -> TriviaQuestion:
        self.calls.append(room.id)
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.pop(0) if self.results else make_question()
        if isinstance(result, Exception):
            raise result
        return result

    def forget_token(self, room_id: str) -> None:
        self.forgotten.append(room_id)

    def get_categories(self) -> List[Category]:
        return list(self.categories)

    def get_category(self, category_id: int) -> Optional[Category]:
        return next((c for c in self.categories if c.id == category_id), None)

    async def close(self) -> None:
        pass


class FakeTriviaAPI:
    """``httpx.MockTransport`` handler imitating Open Trivia DB."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.question_codes: List[int] = []
        self.tokens_issued = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api_category.php":
            return httpx.Response(200, json={"trivia_categories": CATEGORIES})
        if path == "/api_token.php":
            self.tokens_issued += 1
            return httpx.Response(
                200,
                json={"response_code": 0, "response_message": "Token Generated Successfully!", "token": f"tok{self.tokens_issued}"},
            )
        if path == "/api.php":
            code = self.question_codes.pop(0) if self.question_codes else 0
            if code != 0:
                return httpx.Response(200, json={"response_code": code, "results": []})
            return httpx.Response(200, json={"response_code": 0, "results": [dict(QUESTION_RECORD)]})
        return httpx.Response(404)

    def calls_to(self, path: str) -> List[dict]:
        return [dict(r.url.params) for r in self.requests if r.url.path == path]


@pytest.fixture()
def settings():
    # Long delays: tests drive ticks and transitions by hand.
    return Settings(
        _env_file=None,
        tick_interval=60,
        retry_delay=60,
        next_question_delay=60,
        create_default_room=False,
    )


@pytest.fixture()
def bus():
    return LifecycleBus()


@pytest.fixture()
def published(bus):
    events: List[RoomEvent] = []
    bus.subscribe(events.append)
    return events


@pytest.fixture()
def supplier():
    return FakeSupplier()


@pytest.fixture()
def registry(bus, supplier, settings):
    return RoomRegistry(bus, supplier, settings, rng=random.Random(7))


@pytest.fixture()
def server_state(settings, bus, supplier, registry):
    return ServerState(
        settings=settings,
        bus=bus,
        supplier=supplier,
        registry=registry,
        lobby=Lobby(registry, bus),
        users=UserDirectory(settings.nickname_max_length),
    )


@pytest.fixture()
def make_user():
    def _make(nickname: str) -> User:
        return User(nickname)

    return _make
