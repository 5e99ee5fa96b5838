"""In-memory state of one learner's quiz attempt in progress."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Sequence

from classroom_quiz.core.errors import (
    AlreadyAttemptedError,
    NotFoundError,
    SessionClosedError,
    ValidationError,
)
from classroom_quiz.core.models import AttemptResult, Question, Quiz, SessionState, utcnow


class AttemptSession:
    """Tracks navigation and answers for a single timed attempt.

    A session has exactly one writer at a time: the learner's requests and
    the deadline callback are serialized by the session manager.
    """

    def __init__(
        self,
        quiz: Quiz,
        questions: Sequence[Question],
        student_id: str,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._quiz = quiz
        self._questions: tuple[Question, ...] = tuple(questions)
        self._questions_by_id = {q.id: q for q in self._questions}
        self._student_id = student_id
        self._clock = clock
        self._state = SessionState.NOT_STARTED
        self._started_at: datetime | None = None
        self._current_index: int = 0
        self._answers: dict[str, str] = {}
        self._elapsed_seconds: float = 0.0
        self._result: AttemptResult | None = None
        self._deadline_reached: bool = False

    @classmethod
    def start(
        cls,
        quiz: Quiz,
        questions: Sequence[Question],
        student_id: str,
        attempt_history: Iterable[AttemptResult] = (),
        clock: Callable[[], datetime] = utcnow,
    ) -> "AttemptSession":
        """Create and start a session for a quiz the learner has not completed."""
        if any(attempt.quiz_id == quiz.id for attempt in attempt_history):
            raise AlreadyAttemptedError(quiz.id, student_id)
        if not questions:
            raise NotFoundError(f"Quiz {quiz.id} has no questions.")
        session = cls(quiz, questions, student_id, clock=clock)
        session._begin()
        return session

    def _begin(self) -> None:
        self._state = SessionState.IN_PROGRESS
        self._started_at = self._clock()
        self._current_index = 0
        self._answers = {}
        self._deadline_reached = False
        self._elapsed_seconds = 0.0

    # --- Read access ---

    @property
    def quiz(self) -> Quiz:
        return self._quiz

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def started_at(self) -> datetime | None:
        return self._started_at

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def elapsed_seconds(self) -> float:
        return self._elapsed_seconds

    @property
    def result(self) -> AttemptResult | None:
        return self._result

    def is_in_progress(self) -> bool:
        return self._state is SessionState.IN_PROGRESS

    def is_deadline_reached(self) -> bool:
        return self._deadline_reached

    def get_current_question(self) -> Question:
        return self._questions[self._current_index]

    def get_answers(self) -> dict[str, str]:
        return dict(self._answers)

    def get_answer(self, question_id: str) -> str | None:
        return self._answers.get(question_id)

    def get_answered_count(self) -> int:
        return len(self._answers)

    def elapsed_since_start(self) -> float:
        """Seconds between the session start and now according to the clock."""
        if self._started_at is None:
            return 0.0
        return max(0.0, (self._clock() - self._started_at).total_seconds())

    # --- Mutations ---

    def record_answer(self, question_id: str, option: str) -> None:
        """Select ``option`` for a question, replacing any earlier choice."""
        self._require_answering()
        question = self._questions_by_id.get(question_id)
        if question is None:
            raise ValidationError(f"Question {question_id} is not part of this quiz.")
        if not question.has_option(option):
            raise ValidationError(
                f"'{option}' is not an option of question {question_id}."
            )
        self._answers[question_id] = option

    def go_to(self, index: int) -> None:
        """Jump to a question; out-of-range indexes are ignored."""
        self._require_answering()
        if 0 <= index < len(self._questions):
            self._current_index = index

    def next(self) -> None:
        self.go_to(self._current_index + 1)

    def previous(self) -> None:
        self.go_to(self._current_index - 1)

    def publish_elapsed(self, elapsed_seconds: float) -> None:
        if self._state is SessionState.IN_PROGRESS:
            self._elapsed_seconds = elapsed_seconds

    def mark_deadline_reached(self) -> None:
        """Freeze answers and navigation; only submission remains possible."""
        self._deadline_reached = True

    def abandon(self) -> None:
        if self._state.is_terminal:
            return
        if self._state is not SessionState.IN_PROGRESS:
            raise SessionClosedError("Only a session in progress can be abandoned.")
        self._state = SessionState.ABANDONED

    # --- Submission transitions (driven by AttemptSubmitter) ---

    def mark_submitting(self) -> None:
        self._require_in_progress()
        self._state = SessionState.SUBMITTING

    def mark_completed(self, result: AttemptResult | None) -> None:
        if self._state is not SessionState.SUBMITTING:
            raise SessionClosedError("Session is not being submitted.")
        self._result = result
        self._state = SessionState.COMPLETED

    def revert_submitting(self) -> None:
        if self._state is SessionState.SUBMITTING:
            self._state = SessionState.IN_PROGRESS

    def _require_answering(self) -> None:
        self._require_in_progress()
        if self._deadline_reached:
            raise SessionClosedError(f"Time is up for quiz {self._quiz.id}; the attempt can only be submitted.")

    def _require_in_progress(self) -> None:
        if self._state is not SessionState.IN_PROGRESS:
            raise SessionClosedError(
                f"Session for quiz {self._quiz.id} is {self._state.name.lower()}."
            )
