"""Open Trivia DB client.

Session tokens:
- One token per room, requested lazily on the room's first question and
  reused afterwards so the API does not repeat questions within a room.
- A token that has served every question it can (response code 4) is reset
  and the request retried once. A token the API no longer knows (code 3) is
  replaced with a brand-new one and the request retried once.
- A room's token is forgotten when the room is deleted.
"""
from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

import httpx
from pydantic import ValidationError

from .constants import RESPONSE_OK, RESPONSE_TOKEN_EMPTY, RESPONSE_TOKEN_NOT_FOUND
from .lifecycle import LifecycleBus, RoomEvent, RoomEventKind
from .schemas import (
    Category,
    OpenTDBCategoryList,
    OpenTDBQuestion,
    OpenTDBQuestionResponse,
    OpenTDBToken,
    RoomConfiguration,
    TriviaQuestion,
)

if TYPE_CHECKING:
    from .game_room import GameRoom

logger = logging.getLogger(__name__)


class QuestionSupplierError(Exception):
    """The trivia API could not produce what was asked for. Safe to retry later."""


class TokenRejectedError(QuestionSupplierError):
    """The API refused the session token attached to a question request."""

    def __init__(self, response_code: int):
        super().__init__(f"Session token rejected (response code {response_code})")
        self.response_code = response_code


def shuffle_answers(
    correct: str, incorrect: Sequence[str], rng: Optional[random.Random] = None
) -> Tuple[List[str], int]:
    """Merge *correct* into *incorrect*, shuffle, and locate the correct answer.

    Duplicate answer texts resolve to the first matching position.
    """
    answers = list(incorrect) + [correct]
    (rng or random).shuffle(answers)
    return answers, answers.index(correct)


class QuestionSupplier:
    """Fetches trivia questions and categories on behalf of game rooms.

    Manages a shared httpx client for connection reuse and caches the
    category list for the lifetime of the process.
    """

    def __init__(
        self,
        base_url: str = "https://opentdb.com",
        *,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        rng: Optional[random.Random] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http = client or httpx.AsyncClient(timeout=timeout)
        self._rng = rng or random.Random()

        self._categories: List[Category] = []
        # room id -> session token
        self._session_tokens: Dict[str, str] = {}

    async def close(self) -> None:
        """Close the shared HTTP client. Call on app shutdown."""
        await self._http.aclose()

    def attach(self, bus: LifecycleBus) -> None:
        """Forget a room's session token once the room is gone."""
        bus.subscribe(self._on_room_event)

    def _on_room_event(self, event: RoomEvent) -> None:
        if event.kind is RoomEventKind.DELETED:
            self.forget_token(event.summary.id)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def load_categories(self) -> List[Category]:
        """Return every category, hitting the API only the first time."""
        if self._categories:
            return list(self._categories)

        data = await self._get_json("/api_category.php")
        try:
            parsed = OpenTDBCategoryList.model_validate(data)
        except ValidationError as exc:
            raise QuestionSupplierError(f"Malformed category list: {exc}") from exc

        self._categories = list(parsed.trivia_categories)
        logger.info(f"Loaded {len(self._categories)} question categories.")
        return list(self._categories)

    def get_categories(self) -> List[Category]:
        return list(self._categories)

    def get_category(self, category_id: int) -> Optional[Category]:
        """Return the cached category with *category_id*, or None if there is none."""
        for category in self._categories:
            if category.id == category_id:
                return category
        return None

    # ------------------------------------------------------------------
    # Session tokens
    # ------------------------------------------------------------------

    def has_token(self, room_id: str) -> bool:
        return room_id in self._session_tokens

    def forget_token(self, room_id: str) -> None:
        self._session_tokens.pop(room_id, None)

    async def _acquire_token(self, room_id: str, *, reset: bool = False) -> str:
        current = self._session_tokens.get(room_id)
        if reset and current:
            params = {"command": "reset", "token": current}
        else:
            params = {"command": "request"}

        data = await self._get_json("/api_token.php", params)
        try:
            parsed = OpenTDBToken.model_validate(data)
        except ValidationError as exc:
            raise QuestionSupplierError(f"Malformed token response: {exc}") from exc
        if parsed.response_code != RESPONSE_OK:
            raise QuestionSupplierError(f"Token {params['command']} failed (response code {parsed.response_code})")

        self._session_tokens[room_id] = parsed.token
        logger.info(f"Got session token for room {room_id} ({params['command']}).")
        return parsed.token

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def fetch_question(self, room: "GameRoom") -> TriviaQuestion:
        """Fetch one question matching *room*'s category and difficulty.

        Raises:
            QuestionSupplierError: the question could not be fetched; the
                caller decides when to try again.
        """
        params = self._question_params(room.config)

        token = self._session_tokens.get(room.id)
        if token is None:
            logger.info(f"Getting session token for room {room.id}...")
            token = await self._acquire_token(room.id)

        try:
            return await self._request_question(params, token)
        except TokenRejectedError as exc:
            logger.info(f"Resetting session token for room {room.id} (response code {exc.response_code}).")
            token = await self._acquire_token(room.id, reset=exc.response_code == RESPONSE_TOKEN_EMPTY)
            return await self._request_question(params, token)

    @staticmethod
    def _question_params(config: RoomConfiguration) -> Dict[str, Any]:
        params: Dict[str, Any] = {"amount": 1}
        if config.has_difficulty():
            params["difficulty"] = config.difficulty
        if config.has_category():
            params["category"] = config.category.id
        return params

    async def _request_question(self, params: Dict[str, Any], token: str) -> TriviaQuestion:
        data = await self._get_json("/api.php", {**params, "token": token})
        try:
            parsed = OpenTDBQuestionResponse.model_validate(data)
        except ValidationError as exc:
            raise QuestionSupplierError(f"Malformed question response: {exc}") from exc

        if parsed.response_code in (RESPONSE_TOKEN_EMPTY, RESPONSE_TOKEN_NOT_FOUND):
            raise TokenRejectedError(parsed.response_code)
        if parsed.response_code != RESPONSE_OK:
            raise QuestionSupplierError(f"Trivia API returned response code {parsed.response_code}")
        if not parsed.results:
            raise QuestionSupplierError("Trivia API returned no questions")

        return self._make_question(parsed.results[0])

    def _make_question(self, record: OpenTDBQuestion) -> TriviaQuestion:
        answers, correct_index = shuffle_answers(record.correct_answer, record.incorrect_answers, self._rng)
        return TriviaQuestion(
            text=record.question,
            answers=answers,
            correct_answer_index=correct_index,
            category_name=record.category,
            difficulty=record.difficulty,
        )

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._http.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            raise QuestionSupplierError(f"Request to {path} failed: {exc}") from exc
        except ValueError as exc:
            raise QuestionSupplierError(f"Response from {path} was not JSON") from exc


__all__ = [
    "QuestionSupplierError",
    "TokenRejectedError",
    "shuffle_answers",
    "QuestionSupplier",
]
