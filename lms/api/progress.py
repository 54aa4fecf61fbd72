"""The caller's own training progress."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from lms.api.dependencies import CurrentUser, Repos
from lms.models.course import Course
from lms.models.progress import ProgressRecord
from lms.services import progress_service

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class QuizAttemptOut(BaseModel):
    attempt_number: int
    score: int
    passed: bool
    time_spent_minutes: int
    submitted_at: int


class ProgressOut(BaseModel):
    user_id: str
    course_id: str
    course_title: str | None
    status: str
    progress: int
    video_watch_seconds: float
    video_completed: bool
    quiz_attempts: list[QuizAttemptOut]
    best_score: int
    quiz_passed: bool
    can_take_quiz: bool | None
    started_at: int | None
    completed_at: int | None
    last_accessed_at: int | None
    version: int


def progress_out(record: ProgressRecord, course: Course | None = None) -> ProgressOut:
    """Serialize a record; eligibility is only known when the course is."""
    return ProgressOut(
        user_id=record.user_id,
        course_id=str(record.course_id),
        course_title=course.title if course else None,
        status=record.status.value,
        progress=record.progress,
        video_watch_seconds=record.video_watch_seconds,
        video_completed=record.video_completed,
        quiz_attempts=[
            QuizAttemptOut(
                attempt_number=a.attempt_number,
                score=a.score,
                passed=a.passed,
                time_spent_minutes=a.time_spent_minutes,
                submitted_at=a.submitted_at,
            )
            for a in record.quiz_attempts
        ],
        best_score=record.best_score,
        quiz_passed=record.quiz_passed,
        can_take_quiz=(
            progress_service.can_take_quiz(record, course) if course else None
        ),
        started_at=record.started_at,
        completed_at=record.completed_at,
        last_accessed_at=record.last_accessed_at,
        version=record.version,
    )


@router.get("/me", response_model=list[ProgressOut])
async def my_progress(principal: CurrentUser, repos: Repos) -> list[ProgressOut]:
    records = await progress_service.list_user_progress(repos.progress, principal.user_id)
    out = []
    for record in records:
        course = await repos.courses.get(record.course_id)
        out.append(progress_out(record, course))
    return out
