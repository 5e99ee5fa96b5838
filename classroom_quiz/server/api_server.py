"""FastAPI server that exposes the student quiz endpoints."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Literal

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import uvicorn

from classroom_quiz.constants.about import APP_DESCRIPTION, APP_NAME, APP_VERSION
from classroom_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, STUDENT_ID_HEADER
from classroom_quiz.constants.quiz_constants import RECENT_ATTEMPTS_LIMIT
from classroom_quiz.core.errors import (
    AlreadyAttemptedError,
    DuplicateAttemptError,
    NotFoundError,
    QuizError,
    SessionClosedError,
    StorageError,
    ValidationError,
)
from classroom_quiz.core.prompt_renderer import render_prompt
from classroom_quiz.core.models import AttemptResult, AvailableQuiz, Quiz
from classroom_quiz.core.quiz_manager import ActiveAttempt, QuizManager
from classroom_quiz.core.scoring import grade_band, percentage

_ERROR_RESPONSES: list[tuple[type[QuizError], int, str]] = [
    (AlreadyAttemptedError, 409, "already_completed"),
    (DuplicateAttemptError, 409, "already_submitted"),
    (NotFoundError, 404, "not_found"),
    (ValidationError, 422, "invalid_answer"),
    (SessionClosedError, 409, "session_closed"),
    (StorageError, 502, "storage_unavailable"),
]


class AnswerPayload(BaseModel):
    """Payload schema for a selected option."""

    question_id: str
    option: str


class NavigatePayload(BaseModel):
    """Payload schema for moving between questions."""

    action: Literal["next", "previous", "goto"]
    index: int | None = None


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _get_student_id(student_id: str = Header(..., alias=STUDENT_ID_HEADER)) -> str:
    student_id = student_id.strip()
    if not student_id:
        raise HTTPException(status_code=400, detail=f"{STUDENT_ID_HEADER} header must not be blank.")
    return student_id


def _quiz_payload(quiz: Quiz) -> dict[str, object]:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "total_questions": quiz.total_questions,
        "time_limit_minutes": quiz.time_limit_minutes,
        "created_at": quiz.created_at.isoformat() if quiz.created_at else None,
    }


def _attempt_payload(result: AttemptResult) -> dict[str, object]:
    percent = percentage(result.score, result.total_points)
    return {
        "id": result.id,
        "quiz_id": result.quiz_id,
        "score": result.score,
        "total_points": result.total_points,
        "percentage": percent,
        "grade": grade_band(percent),
        "answers": dict(result.answers),
        "completed_at": result.completed_at.isoformat(),
        "time_taken_seconds": result.time_taken_seconds,
    }


def _available_payload(entry: AvailableQuiz) -> dict[str, object]:
    payload = _quiz_payload(entry.quiz)
    payload["completed"] = entry.completed
    payload["attempt"] = _attempt_payload(entry.attempt) if entry.attempt else None
    return payload


def _session_payload(attempt: ActiveAttempt) -> dict[str, object]:
    session = attempt.session
    question = session.get_current_question()
    limit = attempt.timer.time_limit_seconds
    elapsed = session.elapsed_seconds
    return {
        "quiz": _quiz_payload(session.quiz),
        "state": session.state.name.lower(),
        "current_index": session.current_index,
        "question_count": len(session.questions),
        "answered_count": session.get_answered_count(),
        "current_question": {
            "id": question.id,
            "question_html": render_prompt(question.prompt),
            "options": list(question.options),
            "points": question.points,
            "selected_option": session.get_answer(question.id),
        },
        "answers": session.get_answers(),
        "started_at": session.started_at.isoformat() if session.started_at else None,
        "elapsed_seconds": int(elapsed),
        "time_limit_seconds": limit,
        "remaining_seconds": None if limit is None else max(0, int(limit - elapsed)),
        "result": _attempt_payload(session.result) if session.result else None,
    }


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        quiz_manager.shutdown()

    app = FastAPI(title=f"{APP_NAME} API", description=APP_DESCRIPTION, version=APP_VERSION, lifespan=lifespan)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.exception_handler(QuizError)
    async def handle_quiz_error(_: Request, exc: QuizError) -> JSONResponse:
        for error_type, status_code, code in _ERROR_RESPONSES:
            if isinstance(exc, error_type):
                return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code})
        return JSONResponse(status_code=400, content={"detail": str(exc), "code": "quiz_error"})

    @app.get("/quizzes")
    def list_quizzes(
        student_id: str = Depends(_get_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return [_available_payload(entry) for entry in manager.list_available_quizzes(student_id)]

    @app.get("/quizzes/overview")
    def get_overview(
        student_id: str = Depends(_get_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        overview = manager.overview(student_id)
        recent = manager.attempt_history(student_id, limit=RECENT_ATTEMPTS_LIMIT)
        return {
            "total_quizzes": overview.total_quizzes,
            "completed_quizzes": overview.completed_quizzes,
            "pending_quizzes": overview.pending_quizzes,
            "average_score": overview.average_score,
            "recent_attempts": [_attempt_payload(a) for a in recent],
        }

    @app.get("/attempts")
    def list_attempts(
        limit: int | None = None,
        student_id: str = Depends(_get_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return [_attempt_payload(a) for a in manager.attempt_history(student_id, limit=limit)]

    @app.post("/quizzes/{quiz_id}/start", status_code=201)
    async def start_quiz(
        quiz_id: str,
        student_id: str = Depends(_get_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        # Storage reads run in the threadpool; the timer is scheduled on the event loop.
        attempt = await run_in_threadpool(manager.start_quiz, student_id, quiz_id)
        manager.start_timer(attempt)
        return _session_payload(attempt)

    @app.get("/quizzes/{quiz_id}/session")
    def get_session(
        quiz_id: str,
        student_id: str = Depends(_get_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _session_payload(manager.get_active_attempt(student_id, quiz_id))

    @app.post("/quizzes/{quiz_id}/answer")
    def record_answer(
        quiz_id: str,
        payload: AnswerPayload,
        student_id: str = Depends(_get_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        manager.record_answer(student_id, quiz_id, payload.question_id, payload.option)
        return _session_payload(manager.get_active_attempt(student_id, quiz_id))

    @app.post("/quizzes/{quiz_id}/navigate")
    def navigate(
        quiz_id: str,
        payload: NavigatePayload,
        student_id: str = Depends(_get_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        if payload.action == "next":
            manager.next_question(student_id, quiz_id)
        elif payload.action == "previous":
            manager.previous_question(student_id, quiz_id)
        elif payload.index is not None:
            manager.go_to(student_id, quiz_id, payload.index)
        return _session_payload(manager.get_active_attempt(student_id, quiz_id))

    @app.post("/quizzes/{quiz_id}/submit")
    def submit_quiz(
        quiz_id: str,
        student_id: str = Depends(_get_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _attempt_payload(manager.submit_quiz(student_id, quiz_id))

    @app.delete("/quizzes/{quiz_id}/session", status_code=204)
    def abandon_quiz(
        quiz_id: str,
        student_id: str = Depends(_get_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> None:
        manager.abandon_quiz(student_id, quiz_id)

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> None:
    """Serve the API in the foreground until interrupted."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level)
    uvicorn.Server(config).run()
