"""Pydantic data schemas used across the backend service.

Runtime models are serialised with camelCase keys (``to_wire``) because that
is what browser clients receive. The ``OpenTDB*`` models mirror the external
trivia API payloads verbatim and are only used to validate its responses.
"""
from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .constants import NO_ANSWER, POINT_VALUES

Difficulty = Literal["easy", "medium", "hard"]


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


# -----------------------------
# Runtime
# -----------------------------

class Category(WireModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class RoomConfiguration(WireModel):
    """The rules a particular room abides by. Frozen once the room exists."""

    model_config = ConfigDict(frozen=True)

    category: Optional[Category] = None  # None means any category
    difficulty: Optional[Difficulty] = None  # None means any difficulty
    max_seconds: int = Field(default=30, gt=0)
    can_skip_questions: bool = False
    question_count: int = Field(default=0, ge=0)  # 0 means the game never ends

    def has_category(self) -> bool:
        return self.category is not None

    def has_difficulty(self) -> bool:
        return self.difficulty is not None


class TriviaQuestion(WireModel):
    text: str
    answers: List[str] = Field(min_length=2)
    correct_answer_index: int
    category_name: str = ""
    difficulty: str = "medium"

    @model_validator(mode="after")
    def _check_correct_index(self) -> "TriviaQuestion":
        if not 0 <= self.correct_answer_index < len(self.answers):
            raise ValueError("correct_answer_index is outside the answer list")
        return self

    @property
    def point_value(self) -> int:
        return POINT_VALUES.get(self.difficulty, 0)


class UserStatistics(WireModel):
    """Per-room score keeping for a single member."""

    points: int = 0
    points_change: int = 0
    questions_right: int = 0
    questions_wrong: int = 0
    selected_answer_index: int = NO_ANSWER

    @property
    def has_selection(self) -> bool:
        return self.selected_answer_index != NO_ANSWER

    @property
    def questions_total(self) -> int:
        return self.questions_right + self.questions_wrong


class RoomSummary(WireModel):
    """What the lobby knows about a game room."""

    id: str
    name: str
    player_count: int
    category_name: str
    difficulty: str


# -----------------------------
# Client requests
# -----------------------------

class ClientFrame(BaseModel):
    type: str
    data: Any = None


class CreateRoomRequest(WireModel):
    name: str = Field(min_length=1, max_length=64)
    category_id: Optional[int] = None
    difficulty: Optional[Difficulty] = None
    max_seconds: int = Field(default=30, gt=0)
    can_skip_questions: bool = False
    question_count: int = Field(default=0, ge=0)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _blank_means_any(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() in {"", "any"}:
            return None
        return v


# -----------------------------
# Open Trivia DB payloads
# -----------------------------

class OpenTDBCategoryList(BaseModel):
    trivia_categories: List[Category]


class OpenTDBToken(BaseModel):
    response_code: int = 0
    token: str


class OpenTDBQuestion(BaseModel):
    question: str
    correct_answer: str
    incorrect_answers: List[str] = Field(min_length=1)
    category: str = ""
    difficulty: str = ""


class OpenTDBQuestionResponse(BaseModel):
    response_code: int
    results: List[OpenTDBQuestion] = []


__all__ = [
    "Difficulty",
    "WireModel",
    # runtime
    "Category",
    "RoomConfiguration",
    "TriviaQuestion",
    "UserStatistics",
    "RoomSummary",
    # requests
    "ClientFrame",
    "CreateRoomRequest",
    # external API
    "OpenTDBCategoryList",
    "OpenTDBToken",
    "OpenTDBQuestion",
    "OpenTDBQuestionResponse",
]
