"""Service listing the quizzes a learner can take and summarizing their results."""

from __future__ import annotations

import logging

from classroom_quiz.core.models import AttemptResult, AvailableQuiz, Quiz, QuizOverview
from classroom_quiz.core.scoring import round_half_up
from classroom_quiz.storage.base import QuizGateway

logger = logging.getLogger(__name__)


class QuizCatalog:
    """Read side of the learner's quiz page: available quizzes, history, stats."""

    def __init__(self, gateway: QuizGateway) -> None:
        self._gateway = gateway

    def list_available_quizzes(self, student_id: str) -> list[AvailableQuiz]:
        """Return active quizzes of the learner's class, newest first."""
        class_id = self._gateway.fetch_student_class(student_id)
        if class_id is None:
            logger.info("Student %s is not enrolled in a class", student_id)
            return []
        quizzes = [Quiz.from_row(row) for row in self._gateway.fetch_active_quizzes(class_id)]
        attempts = {attempt.quiz_id: attempt for attempt in self.attempt_history(student_id)}
        return [AvailableQuiz(quiz=quiz, attempt=attempts.get(quiz.id)) for quiz in quizzes]

    def attempt_history(self, student_id: str, limit: int | None = None) -> list[AttemptResult]:
        """Return the learner's attempts, most recently completed first."""
        attempts = [AttemptResult.from_row(row) for row in self._gateway.fetch_attempts(student_id)]
        if limit is not None:
            attempts = attempts[: max(0, limit)]
        return attempts

    def has_attempted(self, student_id: str, quiz_id: str) -> bool:
        return any(attempt.quiz_id == quiz_id for attempt in self.attempt_history(student_id))

    def overview(self, student_id: str) -> QuizOverview:
        available = self.list_available_quizzes(student_id)
        attempts = self.attempt_history(student_id)
        total = len(available)
        completed = len(attempts)
        if attempts:
            mean = sum(a.score / a.total_points * 100 for a in attempts if a.total_points) / completed
            average = round_half_up(mean)
        else:
            average = 0
        return QuizOverview(
            total_quizzes=total,
            completed_quizzes=completed,
            pending_quizzes=max(0, total - completed),
            average_score=average,
        )
