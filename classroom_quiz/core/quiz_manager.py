"""Business logic coordinating quiz sessions for the web API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
import logging
from threading import Lock
from typing import Callable

from classroom_quiz.constants.quiz_constants import TICK_INTERVAL_SECONDS
from classroom_quiz.core.errors import DuplicateAttemptError, NotFoundError, QuizError
from classroom_quiz.core.models import AttemptResult, AvailableQuiz, QuizOverview, utcnow
from classroom_quiz.core.services.attempt_session import AttemptSession
from classroom_quiz.core.services.attempt_submitter import AttemptSubmitter
from classroom_quiz.core.services.question_store import QuestionStore
from classroom_quiz.core.services.quiz_catalog import QuizCatalog
from classroom_quiz.core.services.session_timer import SessionTimer
from classroom_quiz.storage.base import QuizGateway

logger = logging.getLogger(__name__)

SessionKey = tuple[str, str]


@dataclass(slots=True)
class ActiveAttempt:
    """A learner's session together with the timer that owns its deadline."""

    session: AttemptSession
    timer: SessionTimer
    lock: Lock = field(default_factory=Lock, repr=False)


class QuizManager:
    """Facade for quiz services: QuestionStore, QuizCatalog, sessions, and submission."""

    def __init__(
        self,
        gateway: QuizGateway,
        clock: Callable[[], datetime] = utcnow,
        tick_interval: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        # Guards the registry only; each attempt carries its own lock.
        self._lock = Lock()
        self._clock = clock
        self._tick_interval = tick_interval

        # Services
        self._store = QuestionStore(gateway)
        self._catalog = QuizCatalog(gateway)
        self._submitter = AttemptSubmitter(gateway, clock=clock)

        self._attempts: dict[SessionKey, ActiveAttempt] = {}

    # --- Catalog Delegation ---

    def list_available_quizzes(self, student_id: str) -> list[AvailableQuiz]:
        return self._catalog.list_available_quizzes(student_id)

    def attempt_history(self, student_id: str, limit: int | None = None) -> list[AttemptResult]:
        return self._catalog.attempt_history(student_id, limit=limit)

    def overview(self, student_id: str) -> QuizOverview:
        return self._catalog.overview(student_id)

    # --- Session Lifecycle ---

    def start_quiz(self, student_id: str, quiz_id: str) -> ActiveAttempt:
        """Start a session, or return the one already in progress for this quiz.

        Storage reads happen outside the registry lock; the timer is not
        scheduled here, see ``start_timer``.
        """
        key = (student_id, quiz_id)
        with self._lock:
            existing = self._attempts.get(key)
        if existing is not None and existing.session.is_in_progress():
            return existing

        quiz = self._store.load_quiz(quiz_id)
        history = self._catalog.attempt_history(student_id)
        questions = self._store.load_questions(quiz_id)
        session = AttemptSession.start(
            quiz, questions, student_id, attempt_history=history, clock=self._clock
        )
        timer = SessionTimer(
            started_at=session.started_at,
            time_limit_seconds=quiz.time_limit_seconds,
            on_deadline=partial(self._auto_submit, student_id, quiz_id),
            on_tick=session.publish_elapsed,
            clock=self._clock,
            interval=self._tick_interval,
        )
        attempt = ActiveAttempt(session=session, timer=timer)

        with self._lock:
            existing = self._attempts.get(key)
            if existing is not None and existing.session.is_in_progress():
                # A concurrent request for the same quiz won the race.
                return existing
            self._attempts[key] = attempt

        logger.info(
            "Student %s started quiz %s (%d questions, limit=%s)",
            student_id,
            quiz_id,
            len(questions),
            quiz.time_limit_seconds,
        )
        return attempt

    @staticmethod
    def start_timer(attempt: ActiveAttempt) -> None:
        """Schedule the attempt's timer on the running event loop, once."""
        timer = attempt.timer
        if not timer.is_running() and not timer.is_cancelled():
            timer.start()

    def get_active_attempt(self, student_id: str, quiz_id: str) -> ActiveAttempt:
        return self._get_attempt((student_id, quiz_id))

    def record_answer(self, student_id: str, quiz_id: str, question_id: str, option: str) -> None:
        attempt = self._get_attempt((student_id, quiz_id))
        with attempt.lock:
            self._enforce_deadline(attempt)
            attempt.session.record_answer(question_id, option)

    def go_to(self, student_id: str, quiz_id: str, index: int) -> int:
        attempt = self._get_attempt((student_id, quiz_id))
        with attempt.lock:
            self._enforce_deadline(attempt)
            attempt.session.go_to(index)
            return attempt.session.current_index

    def next_question(self, student_id: str, quiz_id: str) -> int:
        attempt = self._get_attempt((student_id, quiz_id))
        with attempt.lock:
            self._enforce_deadline(attempt)
            attempt.session.next()
            return attempt.session.current_index

    def previous_question(self, student_id: str, quiz_id: str) -> int:
        attempt = self._get_attempt((student_id, quiz_id))
        with attempt.lock:
            self._enforce_deadline(attempt)
            attempt.session.previous()
            return attempt.session.current_index

    def submit_quiz(self, student_id: str, quiz_id: str) -> AttemptResult:
        """Score and store the attempt.

        Once stored the session leaves the registry; submitting again returns
        the stored result from the attempt history.
        """
        key = (student_id, quiz_id)
        with self._lock:
            attempt = self._attempts.get(key)
        if attempt is None:
            return self._stored_result(student_id, quiz_id)

        with attempt.lock:
            try:
                return self._submitter.submit(attempt.session, attempt.timer)
            finally:
                if attempt.session.state.is_terminal:
                    self._forget(key, attempt)

    def abandon_quiz(self, student_id: str, quiz_id: str) -> None:
        """Discard the session without storing a result."""
        with self._lock:
            attempt = self._attempts.pop((student_id, quiz_id), None)
        if attempt is None:
            raise NotFoundError(f"No session for quiz {quiz_id}.")
        attempt.timer.cancel()
        with attempt.lock:
            attempt.session.abandon()
        logger.info("Student %s abandoned quiz %s", student_id, quiz_id)

    def shutdown(self) -> None:
        """Stop every running timer and forget all sessions."""
        with self._lock:
            attempts = list(self._attempts.values())
            self._attempts.clear()
        for attempt in attempts:
            attempt.timer.cancel()

    def get_active_session_count(self) -> int:
        with self._lock:
            return sum(1 for a in self._attempts.values() if a.session.is_in_progress())

    def get_tracked_session_count(self) -> int:
        with self._lock:
            return len(self._attempts)

    # --- Internals ---

    def _get_attempt(self, key: SessionKey) -> ActiveAttempt:
        with self._lock:
            attempt = self._attempts.get(key)
        if attempt is None:
            raise NotFoundError(f"No session for quiz {key[1]}.")
        return attempt

    def _forget(self, key: SessionKey, attempt: ActiveAttempt) -> None:
        with self._lock:
            if self._attempts.get(key) is attempt:
                del self._attempts[key]

    def _stored_result(self, student_id: str, quiz_id: str) -> AttemptResult:
        for result in self._catalog.attempt_history(student_id):
            if result.quiz_id == quiz_id:
                return result
        raise NotFoundError(f"No session for quiz {quiz_id}.")

    @staticmethod
    def _enforce_deadline(attempt: ActiveAttempt) -> None:
        remaining = attempt.timer.remaining_seconds()
        if remaining is not None and remaining <= 0:
            attempt.session.mark_deadline_reached()

    def _auto_submit(self, student_id: str, quiz_id: str) -> None:
        logger.info("Time limit reached for student %s on quiz %s", student_id, quiz_id)
        with self._lock:
            attempt = self._attempts.get((student_id, quiz_id))
        if attempt is None:
            return
        with attempt.lock:
            attempt.session.mark_deadline_reached()
        try:
            self.submit_quiz(student_id, quiz_id)
        except DuplicateAttemptError:
            logger.warning("Quiz %s was already submitted by student %s", quiz_id, student_id)
        except QuizError as exc:
            logger.warning("Auto-submit of quiz %s failed: %s", quiz_id, exc)
