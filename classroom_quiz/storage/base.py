"""Storage gateway contract shared by the Supabase and in-memory backends.

Rows are plain dictionaries shaped like the backend tables
(``quizzes``, ``quiz_questions``, ``quiz_attempts``, ``student_enrollments``)
so the domain models can be built from either backend with ``from_row``.
"""

from __future__ import annotations

from typing import Any, Protocol

Row = dict[str, Any]


class QuizGateway(Protocol):
    """Data-access collaborator used by the quiz engine."""

    def fetch_quiz(self, quiz_id: str) -> Row | None:
        ...

    def fetch_questions(self, quiz_id: str) -> list[Row]:
        """Return question rows for a quiz in creation order."""
        ...

    def fetch_student_class(self, student_id: str) -> str | None:
        ...

    def fetch_active_quizzes(self, class_id: str) -> list[Row]:
        """Return active quizzes of a class, newest first."""
        ...

    def fetch_attempts(self, student_id: str) -> list[Row]:
        """Return the learner's attempt rows, most recently completed first."""
        ...

    def insert_attempt(self, row: Row) -> Row:
        """Insert an attempt row.

        Raises ``DuplicateAttemptError`` when a row for the same
        ``(quiz_id, student_id)`` pair already exists.
        """
        ...
