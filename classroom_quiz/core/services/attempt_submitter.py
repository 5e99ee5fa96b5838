"""Service that scores a finished session and persists its result once."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Callable

from classroom_quiz.core.errors import DuplicateAttemptError, SessionClosedError
from classroom_quiz.core.models import AttemptResult, SessionState, utcnow
from classroom_quiz.core.scoring import score
from classroom_quiz.core.services.attempt_session import AttemptSession
from classroom_quiz.core.services.session_timer import SessionTimer
from classroom_quiz.storage.base import QuizGateway

logger = logging.getLogger(__name__)


class AttemptSubmitter:
    """Turns an attempt session into a stored ``AttemptResult``.

    Storage enforces uniqueness of ``(quiz_id, student_id)``; this class
    never retries a rejected insert.
    """

    def __init__(self, gateway: QuizGateway, clock: Callable[[], datetime] = utcnow) -> None:
        self._gateway = gateway
        self._clock = clock

    def submit(self, session: AttemptSession, timer: SessionTimer | None = None) -> AttemptResult:
        """Score and persist the session.

        Submitting a session that already completed returns the stored
        result, or raises ``DuplicateAttemptError`` again when the session
        completed because another submission won.
        """
        if session.state is SessionState.COMPLETED:
            if session.result is None:
                raise DuplicateAttemptError(session.quiz.id, session.student_id)
            return session.result
        if session.state is not SessionState.IN_PROGRESS:
            raise SessionClosedError(
                f"Session for quiz {session.quiz.id} is {session.state.name.lower()}."
            )

        session.mark_submitting()
        try:
            result = self._build_result(session)
            stored = self._gateway.insert_attempt(result.to_row())
        except DuplicateAttemptError:
            logger.warning(
                "Duplicate attempt rejected for student %s on quiz %s",
                session.student_id,
                session.quiz.id,
            )
            session.mark_completed(None)
            self._stop(timer)
            raise
        except Exception:
            session.revert_submitting()
            raise

        if stored.get("id") is not None:
            result = AttemptResult(
                id=str(stored["id"]),
                quiz_id=result.quiz_id,
                student_id=result.student_id,
                answers=result.answers,
                score=result.score,
                total_points=result.total_points,
                completed_at=result.completed_at,
                time_taken_seconds=result.time_taken_seconds,
            )
        session.mark_completed(result)
        self._stop(timer)
        logger.info(
            "Stored attempt for student %s on quiz %s: %s/%s",
            result.student_id,
            result.quiz_id,
            result.score,
            result.total_points,
        )
        return result

    def _build_result(self, session: AttemptSession) -> AttemptResult:
        completed_at = self._clock()
        started_at = session.started_at or completed_at
        elapsed = max(0, int((completed_at - started_at).total_seconds()))
        answers = session.get_answers()
        earned, total_points = score(session.questions, answers)
        return AttemptResult(
            quiz_id=session.quiz.id,
            student_id=session.student_id,
            answers=answers,
            score=earned,
            total_points=total_points,
            completed_at=completed_at,
            time_taken_seconds=elapsed,
        )

    @staticmethod
    def _stop(timer: SessionTimer | None) -> None:
        if timer is not None:
            timer.cancel()
