"""The trivia room state machine.

A room loops through

    awaiting question -> question active (counting down) -> grading

until its question limit is reached, at which point the game is over.
Every method here is synchronous and runs as a single step on the event
loop; the only suspension point is the question fetch, whose continuation
re-checks that the room still exists before touching it.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from .constants import ANY_LABEL, NO_ANSWER
from .question_source import QuestionSupplier, QuestionSupplierError
from .room import RoomMembership
from .schemas import RoomConfiguration, RoomSummary, TriviaQuestion, UserStatistics
from .scoring import grade_answer, rank
from .user import User

if TYPE_CHECKING:
    from .config import Settings
    from .registry import RoomRegistry

logger = logging.getLogger(__name__)


class GameRoom(RoomMembership):
    """A room in which players play one game of trivia."""

    def __init__(
        self,
        room_id: str,
        name: str,
        config: RoomConfiguration,
        *,
        registry: "RoomRegistry",
        supplier: QuestionSupplier,
        settings: "Settings",
        delete_on_empty: bool = True,
    ):
        super().__init__(room_id)
        self.name = name
        self.config = config
        self.delete_on_empty = delete_on_empty
        self.registry = registry
        self.supplier = supplier
        self.settings = settings

        self.current_question: Optional[TriviaQuestion] = None
        self.seconds_left = config.max_seconds
        self.accept_answers = False
        self.questions_answered = 0
        self.user_stats: Dict[User, UserStatistics] = {}

        # Whatever is scheduled next: a countdown tick, a fetch retry, or the
        # pause before the next question. Only one is ever pending.
        self._timer: Optional[asyncio.TimerHandle] = None
        self._fetch_task: Optional[asyncio.Task] = None

    # -------------------- Lifecycle -------------------- #

    def start(self) -> None:
        self.request_new_question()

    def is_registered(self) -> bool:
        return self.registry.get_room(self.id) is self

    def is_game_over(self) -> bool:
        return self.config.question_count != 0 and self.questions_answered >= self.config.question_count

    def cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def stop(self) -> None:
        """Cancel everything pending, including a fetch in flight. Used on shutdown."""
        self.cancel_timer()
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self.cancel_timer()
        self._timer = asyncio.get_running_loop().call_later(delay, callback)

    # -------------------- Question cycle -------------------- #

    def request_new_question(self) -> None:
        """Ask the supplier for the next question without blocking the loop."""
        self.cancel_timer()
        if self.is_game_over() or not self.is_registered():
            return
        self._fetch_task = asyncio.create_task(self._fetch_question())

    async def _fetch_question(self) -> None:
        delay = self.settings.retry_delay
        try:
            question = await self.supplier.fetch_question(self)
        except QuestionSupplierError as exc:
            if self._abandon_fetch():
                return
            logger.warning(f"Question retrieval error in room {self.id}. Trying again in {delay}s. Error: {exc}")
            self._schedule(delay, self.request_new_question)
            return
        except Exception:
            if self._abandon_fetch():
                return
            logger.exception(f"Unexpected error fetching a question for room {self.id}. Trying again in {delay}s.")
            self._schedule(delay, self.request_new_question)
            return

        if self._abandon_fetch():
            logger.info(f"Discarded question fetched for deleted room {self.id}.")
            return
        self.set_new_question(question)

    def _abandon_fetch(self) -> bool:
        """True if the room was deleted while its fetch was in flight.

        The supplier may have stored a token for the room after the deletion
        was announced, so it is dropped here as well.
        """
        if self.is_registered():
            return False
        self.supplier.forget_token(self.id)
        return True

    def set_new_question(self, question: TriviaQuestion) -> None:
        self.current_question = question
        self.seconds_left = self.config.max_seconds
        self.accept_answers = True

        self.send_current_question_to_all()
        self.send_seconds_left()
        self._schedule(self.settings.tick_interval, self.countdown_tick)

    def countdown_tick(self) -> None:
        self.cancel_timer()
        self.seconds_left -= 1
        self.send_seconds_left()
        if self.seconds_left <= 0:
            self.end_question()
        else:
            self._schedule(self.settings.tick_interval, self.countdown_tick)

    def end_question(self) -> None:
        """Lock answers, grade them, then either queue the next question or end the game."""
        self.accept_answers = False
        self.broadcast("end question")
        self.grade_answers()
        self.questions_answered += 1

        if not self.is_game_over():
            self._schedule(self.settings.next_question_delay, self.request_new_question)
            return

        logger.info(f"Game over in room {self.id} after {self.questions_answered} questions.")
        self.send_game_over_to_all()
        if self.delete_on_empty:
            self.registry.delete_room(self)

    def grade_answers(self) -> None:
        """Tell each member how they did, publish the new stats, and clear selections."""
        if self.current_question is None:
            return

        for user in list(self.members):
            result = grade_answer(self.user_stats[user], self.current_question, self.config.can_skip_questions)
            user.send("answer result", int(result))

        self.send_user_stats_to_all()

        for stats in self.user_stats.values():
            stats.selected_answer_index = NO_ANSWER

    # -------------------- Player actions -------------------- #

    def submit_answer(self, user: User, answer_index: Any) -> bool:
        """Record *user*'s pick for the current question.

        Only the first pick counts, and only while answers are accepted.
        Anything else is ignored and reported as False.
        """
        stats = self.user_stats.get(user)
        if stats is None or stats.has_selection or not self.accept_answers:
            return False
        if self.current_question is None:
            return False
        if not isinstance(answer_index, int) or isinstance(answer_index, bool):
            return False
        if not 0 <= answer_index < len(self.current_question.answers):
            return False

        stats.selected_answer_index = answer_index
        return True

    def join(self, user: User) -> None:
        if self.is_member(user):
            return
        super().join(user)
        self.user_stats[user] = UserStatistics()
        logger.info(f"{user.nickname} joined room {self.id}.")

        user.send("entered game room", self.id)
        self.send_user_stats_to_all()
        if self.is_game_over():
            self.send_game_over_to_one(user)
        else:
            self.send_current_question_to_one(user)

        self.registry.notify_updated(self)

    def leave(self, user: User) -> None:
        if not self.is_member(user):
            return
        super().leave(user)
        self.user_stats.pop(user, None)
        logger.info(f"{user.nickname} left room {self.id}.")

        user.send("left game room")
        self.send_user_stats_to_all()

        if not self.members and self.delete_on_empty:
            self.registry.delete_room(self)
        else:
            self.registry.notify_updated(self)

    # -------------------- Views -------------------- #

    def summary(self) -> RoomSummary:
        return RoomSummary(
            id=self.id,
            name=self.name,
            player_count=len(self.members),
            category_name=self.config.category.name if self.config.has_category() else ANY_LABEL,
            difficulty=self.config.difficulty if self.config.has_difficulty() else ANY_LABEL,
        )

    def get_user_stats(self) -> List[dict]:
        return [self._stats_entry(u, self.user_stats[u]) for u in self.members]

    def get_ranked_stats(self) -> List[dict]:
        ranked = rank((u, self.user_stats[u]) for u in self.members)
        return [self._stats_entry(u, stats) for u, stats in ranked]

    @staticmethod
    def _stats_entry(user: User, stats: UserStatistics) -> dict:
        return {"nickname": user.nickname, **stats.to_wire()}

    def _question_payload(self) -> Optional[dict]:
        if self.current_question is None:
            return None
        return {
            **self.current_question.to_wire(),
            "questionNumber": self.questions_answered + 1,
            "questionCount": self.config.question_count,
        }

    # -------------------- Broadcasting helpers -------------------- #

    def send_seconds_left(self) -> None:
        self.broadcast("seconds left", self.seconds_left)

    def send_current_question_to_all(self) -> None:
        payload = self._question_payload()
        if payload is not None:
            self.broadcast("set question", payload)

    def send_current_question_to_one(self, user: User) -> None:
        payload = self._question_payload()
        if payload is not None:
            user.send("set question", payload)

    def send_user_stats_to_all(self) -> None:
        self.broadcast("set user stats", self.get_user_stats())

    def send_game_over_to_all(self) -> None:
        self.broadcast("game over", self.get_ranked_stats())

    def send_game_over_to_one(self, user: User) -> None:
        user.send("game over", self.get_ranked_stats())


__all__ = ["GameRoom"]
