"""Per-learner progress through a course.

Every operation reads the current record, computes the next state and
writes it back through the repository's version check.  Progress and
watch time only move forward; a passed quiz completes the course for
good.  The one way back is ``restart_course``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from uuid import UUID

from lms.core.clock import epoch_now
from lms.core.metrics import COURSE_COMPLETIONS, QUIZ_SUBMISSIONS
from lms.models.course import Course
from lms.models.progress import (
    ProgressRecord,
    ProgressStatus,
    QuizAnswer,
    QuizAttempt,
)
from lms.repos.progress_repo import ProgressRepo
from lms.services.errors import (
    AlreadyExists,
    ConcurrentModification,
    NotFoundError,
    PreconditionFailed,
    ValidationError,
)

logger = logging.getLogger(__name__)

VIDEO_COMPLETE_PERCENT = 90
VIDEO_PROGRESS_SHARE = 50  # video counts for half of a course that also has a quiz


def score_percent(correct: int, total: int) -> int:
    """Percentage of correct answers, rounded half-up."""
    return math.floor(correct * 100 / total + 0.5)


async def _load(repo: ProgressRepo, user_id: str, course_id: UUID) -> ProgressRecord:
    record = await repo.get(user_id, course_id)
    if record is None:
        return ProgressRecord.new(user_id=user_id, course_id=course_id)
    return record


async def _save(repo: ProgressRepo, record: ProgressRecord) -> ProgressRecord:
    if record.version == 0:
        try:
            return await repo.add(record)
        except AlreadyExists:
            # Another request created the record after our read.
            raise ConcurrentModification(
                "progress record was created concurrently; reload and retry"
            ) from None
    return await repo.update(record)


def _touch(record: ProgressRecord, now: int) -> ProgressRecord:
    """Mark the record accessed, moving not_started to in_progress."""
    if record.status == ProgressStatus.NOT_STARTED:
        return replace(
            record,
            status=ProgressStatus.IN_PROGRESS,
            started_at=now,
            last_accessed_at=now,
        )
    return replace(record, last_accessed_at=now)


def _complete(record: ProgressRecord, now: int, trigger: str) -> ProgressRecord:
    if record.is_completed:
        return replace(record, progress=100)
    COURSE_COMPLETIONS.labels(trigger=trigger).inc()
    logger.info(
        "Course completed user=%s course=%s trigger=%s",
        record.user_id,
        record.course_id,
        trigger,
    )
    return replace(
        record, status=ProgressStatus.COMPLETED, progress=100, completed_at=now
    )


def _fail(record: ProgressRecord) -> ProgressRecord:
    """Mark the record failed unless it has already been completed."""
    if record.is_completed or record.quiz_passed:
        return record
    return replace(record, status=ProgressStatus.FAILED)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_progress(
    repo: ProgressRepo, user_id: str, course_id: UUID
) -> ProgressRecord | None:
    return await repo.get(user_id, course_id)


async def list_user_progress(repo: ProgressRepo, user_id: str) -> list[ProgressRecord]:
    records = await repo.list_by_user(user_id)
    return sorted(records, key=lambda r: r.last_accessed_at or 0, reverse=True)


def quiz_eligibility(record: ProgressRecord | None, course: Course) -> str | None:
    """Why the learner cannot take the quiz right now, or None if they can."""
    quiz = course.quiz
    if quiz is None or not course.has_quiz:
        return "course has no quiz"
    if course.has_video_content and not (record and record.video_completed):
        return "video must be completed before taking the quiz"
    if record is not None and record.quiz_passed:
        if quiz.allow_retakes:
            return None
        return "quiz already passed and retakes are not allowed"
    attempts = record.attempt_count if record else 0
    if attempts >= quiz.max_attempts:
        return f"maximum attempts reached ({quiz.max_attempts})"
    return None


def can_take_quiz(record: ProgressRecord | None, course: Course) -> bool:
    return quiz_eligibility(record, course) is None


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def start_course(
    repo: ProgressRepo, user_id: str, course: Course, *, now: int | None = None
) -> ProgressRecord:
    now = now if now is not None else epoch_now()
    record = await _load(repo, user_id, course.id)
    if record.status != ProgressStatus.NOT_STARTED:
        raise AlreadyExists("Training already started")
    stored = await _save(repo, _touch(record, now))
    logger.info("Course started user=%s course=%s", user_id, course.id)
    return stored


async def update_video_progress(
    repo: ProgressRepo,
    user_id: str,
    course: Course,
    watched_seconds: float,
    total_duration_seconds: float,
    *,
    now: int | None = None,
) -> ProgressRecord:
    if not course.has_video_content:
        raise PreconditionFailed("course has no video content")
    for field, value in (
        ("watched_seconds", watched_seconds),
        ("total_duration_seconds", total_duration_seconds),
    ):
        if not math.isfinite(value):
            raise ValidationError(f"{field} must be a finite number", field=field)
    if total_duration_seconds <= 0:
        raise ValidationError(
            "total_duration_seconds must be positive", field="total_duration_seconds"
        )
    if watched_seconds < 0:
        raise ValidationError(
            "watched_seconds cannot be negative", field="watched_seconds"
        )

    now = now if now is not None else epoch_now()
    record = _touch(await _load(repo, user_id, course.id), now)

    watch_percent = watched_seconds / total_duration_seconds * 100
    record = replace(
        record, video_watch_seconds=max(record.video_watch_seconds, watched_seconds)
    )
    if watch_percent >= VIDEO_COMPLETE_PERCENT:
        record = replace(
            record,
            video_completed=True,
            progress=max(record.progress, VIDEO_PROGRESS_SHARE),
        )
    else:
        record = replace(
            record,
            progress=max(record.progress, math.floor(watch_percent * 0.5)),
        )

    if record.video_completed and not course.has_quiz:
        record = _complete(record, now, "video")

    return await _save(repo, record)


async def report_progress(
    repo: ProgressRepo,
    user_id: str,
    course: Course,
    percent: int,
    *,
    now: int | None = None,
) -> ProgressRecord:
    """Record self-reported progress through interactive content.

    Without a quiz, reaching 100 completes the course.  With a quiz the
    content is worth half of the course, like a video.
    """
    if course.has_video_content:
        raise PreconditionFailed("video courses report progress through video-progress")
    if not 0 <= percent <= 100:
        raise ValidationError("progress must be between 0 and 100", field="progress")

    now = now if now is not None else epoch_now()
    record = _touch(await _load(repo, user_id, course.id), now)
    if course.has_quiz:
        record = replace(
            record, progress=max(record.progress, math.floor(percent * 0.5))
        )
    else:
        record = replace(record, progress=max(record.progress, percent))
        if record.progress >= 100:
            record = _complete(record, now, "interactive")
    return await _save(repo, record)


async def submit_quiz(
    repo: ProgressRepo,
    user_id: str,
    course: Course,
    answers: list[int | None],
    *,
    time_spent_minutes: int = 0,
    now: int | None = None,
) -> tuple[ProgressRecord, QuizAttempt]:
    """Score one quiz attempt and fold it into the learner's record."""
    record = await _load(repo, user_id, course.id)
    reason = quiz_eligibility(record, course)
    if reason is not None:
        logger.warning(
            "Quiz submission rejected user=%s course=%s reason=%s",
            user_id,
            course.id,
            reason,
        )
        raise PreconditionFailed(reason)

    quiz = course.quiz
    if quiz is None:
        raise PreconditionFailed("course has no quiz")
    if len(answers) != quiz.question_count:
        raise ValidationError(
            f"expected {quiz.question_count} answers, got {len(answers)}",
            field="answers",
        )
    if time_spent_minutes < 0:
        raise ValidationError(
            "time_spent_minutes cannot be negative", field="time_spent_minutes"
        )

    now = now if now is not None else epoch_now()
    graded = tuple(
        QuizAnswer(
            question_index=i,
            selected_option=selected,
            is_correct=selected is not None and selected == q.correct_option,
        )
        for i, (q, selected) in enumerate(zip(quiz.questions, answers, strict=True))
    )
    correct = sum(1 for a in graded if a.is_correct)
    score = score_percent(correct, quiz.question_count)
    passed = score >= quiz.passing_score

    attempt = QuizAttempt(
        attempt_number=record.attempt_count + 1,
        answers=graded,
        score=score,
        passed=passed,
        submitted_at=now,
        time_spent_minutes=time_spent_minutes,
    )
    record = _touch(record, now)
    record = replace(
        record,
        quiz_attempts=record.quiz_attempts + (attempt,),
        best_score=max(record.best_score, score),
    )
    if passed:
        record = _complete(replace(record, quiz_passed=True), now, "quiz")
    elif record.attempt_count >= quiz.max_attempts:
        record = _fail(record)

    stored = await _save(repo, record)
    QUIZ_SUBMISSIONS.labels(result="passed" if passed else "failed").inc()
    logger.info(
        "Quiz attempt recorded user=%s course=%s attempt=%d score=%d passed=%s",
        user_id,
        course.id,
        attempt.attempt_number,
        score,
        passed,
    )
    return stored, attempt


async def restart_course(
    repo: ProgressRepo, user_id: str, course: Course, *, now: int | None = None
) -> ProgressRecord:
    """Reset an unfinished record so the learner can go through it again."""
    record = await repo.get(user_id, course.id)
    if record is None:
        raise NotFoundError("progress record not found")
    if record.is_completed:
        raise PreconditionFailed("completed training cannot be restarted")
    if record.status == ProgressStatus.NOT_STARTED:
        raise PreconditionFailed("training has not been started")

    now = now if now is not None else epoch_now()
    reset = replace(
        record,
        status=ProgressStatus.IN_PROGRESS,
        progress=0,
        video_watch_seconds=0.0,
        video_completed=False,
        quiz_attempts=(),
        best_score=0,
        started_at=now,
        completed_at=None,
        last_accessed_at=now,
    )
    stored = await repo.update(reset)
    logger.info(
        "Course restarted user=%s course=%s previous_status=%s",
        user_id,
        course.id,
        record.status,
    )
    return stored
