"""Service for loading quizzes and their question sets from storage."""

from __future__ import annotations

from classroom_quiz.core.errors import NotFoundError, ValidationError
from classroom_quiz.core.models import Question, Quiz
from classroom_quiz.storage.base import QuizGateway, Row


class QuestionStore:
    """Read-only access to quizzes and questions.

    Nothing is cached: every call re-fetches so that edits made between
    attempts are visible to the next session, never to a running one.
    """

    def __init__(self, gateway: QuizGateway) -> None:
        self._gateway = gateway

    def load_quiz(self, quiz_id: str) -> Quiz:
        row = self._gateway.fetch_quiz(quiz_id)
        if row is None:
            raise NotFoundError(f"Quiz {quiz_id} does not exist.")
        quiz = Quiz.from_row(row)
        if not quiz.active:
            raise NotFoundError(f"Quiz {quiz_id} is not active.")
        return quiz

    def load_questions(self, quiz_id: str) -> tuple[Question, ...]:
        """Return the quiz's questions in creation order."""
        rows = self._gateway.fetch_questions(quiz_id)
        if not rows:
            raise NotFoundError(f"Quiz {quiz_id} has no questions.")
        return tuple(self._prepare_question(row) for row in rows)

    def _prepare_question(self, row: Row) -> Question:
        """Validate a stored question row before it enters a session."""
        try:
            question = Question.from_row(row)
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Malformed question row: {exc}") from exc

        if not question.prompt.strip():
            raise ValidationError(f"Question {question.id} has no text.")
        self._validate_options(question)
        if question.points <= 0:
            raise ValidationError(f"Question {question.id} must be worth a positive number of points.")
        return question

    @staticmethod
    def _validate_options(question: Question) -> None:
        if not question.options:
            raise ValidationError(f"Question {question.id} has no options.")
        if any(not isinstance(option, str) for option in question.options):
            raise ValidationError(f"Question {question.id} has non-text options.")
        if len(set(question.options)) != len(question.options):
            raise ValidationError(f"Question {question.id} has duplicate options.")
        if question.correct_answer not in question.options:
            raise ValidationError(
                f"Correct answer of question {question.id} is not one of its options."
            )
