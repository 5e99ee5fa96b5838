"""Exceptions raised by the quiz session engine."""

from __future__ import annotations


class QuizError(Exception):
    """Base class for quiz engine failures recovered at the screen boundary."""


class NotFoundError(QuizError):
    """Raised when a quiz, its questions, or an active session does not exist."""


class AlreadyAttemptedError(QuizError):
    """Raised when a learner starts a quiz they already completed."""

    def __init__(self, quiz_id: str, student_id: str) -> None:
        super().__init__(f"Quiz {quiz_id} has already been completed.")
        self.quiz_id = quiz_id
        self.student_id = student_id


class DuplicateAttemptError(QuizError):
    """Raised when storage rejects a second result for the same student and quiz."""

    def __init__(self, quiz_id: str, student_id: str) -> None:
        super().__init__(f"An attempt for quiz {quiz_id} was already submitted.")
        self.quiz_id = quiz_id
        self.student_id = student_id


class ValidationError(QuizError):
    """Raised when an answer or question row breaks the question invariants."""


class SessionClosedError(QuizError):
    """Raised when a finished or abandoned session is asked to change."""


class StorageError(QuizError):
    """Raised when the storage backend fails for a reason other than a duplicate."""
