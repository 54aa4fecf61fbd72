"""Course catalog: validation and lifecycle of course definitions."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any
from uuid import UUID

from lms.core.clock import epoch_now
from lms.models.course import (
    Course,
    Quiz,
    UploadedVideo,
    YouTubeVideo,
)
from lms.models.principal import Principal
from lms.repos.course_repo import CourseRepo
from lms.repos.progress_repo import ProgressRepo
from lms.services.access_gate import can_access, ensure_access
from lms.services.errors import NotFoundError, PreconditionFailed, ValidationError

logger = logging.getLogger(__name__)

TITLE_MAX = 200
DESCRIPTION_MAX = 1000
QUESTION_MAX = 500
OPTION_MAX = 200
EXPLANATION_MAX = 300

_YOUTUBE_HOST_RE = re.compile(r"^(https?://)?(www\.|m\.)?(youtube\.com|youtu\.be)/", re.I)
_YOUTUBE_ID_RE = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")

# Fields an update may change.  Identity and audit fields are managed here.
UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "category",
        "duration_minutes",
        "content",
        "status",
        "mandatory",
        "deadline",
        "quiz",
        "audience",
        "materials",
    }
)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def extract_youtube_video_id(url: str) -> str | None:
    """Return the 11-character video id of a YouTube URL, or None."""
    url = url.strip()
    if not _YOUTUBE_HOST_RE.match(url):
        return None
    match = _YOUTUBE_ID_RE.match(url)
    if match is None or len(match.group(2)) != 11:
        return None
    return match.group(2)


def youtube_content(url: str) -> YouTubeVideo:
    video_id = extract_youtube_video_id(url)
    if video_id is None:
        raise ValidationError("Invalid YouTube URL", field="youtube_url")
    return YouTubeVideo(url=url.strip(), video_id=video_id)


def normalize_quiz(quiz: Quiz | None) -> Quiz | None:
    """A quiz without questions is stored as no quiz at all."""
    if quiz is None or quiz.question_count == 0:
        return None
    return quiz


def _require_text(value: str, field: str, limit: int) -> None:
    if not value or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    if len(value) > limit:
        raise ValidationError(
            f"{field} cannot exceed {limit} characters", field=field
        )


def validate_quiz(quiz: Quiz) -> None:
    if not 0 <= quiz.passing_score <= 100:
        raise ValidationError(
            "passing_score must be between 0 and 100", field="quiz.passing_score"
        )
    if quiz.max_attempts < 1:
        raise ValidationError(
            "max_attempts must allow at least 1 attempt", field="quiz.max_attempts"
        )
    if quiz.time_limit_minutes < 1:
        raise ValidationError(
            "time_limit_minutes must be at least 1", field="quiz.time_limit_minutes"
        )
    for i, q in enumerate(quiz.questions):
        prefix = f"quiz.questions[{i}]"
        _require_text(q.question, f"{prefix}.question", QUESTION_MAX)
        if len(q.options) < 2:
            raise ValidationError(
                "each question needs at least 2 options", field=f"{prefix}.options"
            )
        for j, option in enumerate(q.options):
            _require_text(option, f"{prefix}.options[{j}]", OPTION_MAX)
        if not 0 <= q.correct_option < len(q.options):
            raise ValidationError(
                "correct_option must index one of the options",
                field=f"{prefix}.correct_option",
            )
        if q.explanation is not None and len(q.explanation) > EXPLANATION_MAX:
            raise ValidationError(
                f"explanation cannot exceed {EXPLANATION_MAX} characters",
                field=f"{prefix}.explanation",
            )


def validate_course(course: Course) -> None:
    """Raise ValidationError on the first rule the course breaks."""
    _require_text(course.title, "title", TITLE_MAX)
    _require_text(course.description, "description", DESCRIPTION_MAX)
    if course.duration_minutes < 1:
        raise ValidationError(
            "Duration must be at least 1 minute", field="duration_minutes"
        )

    match course.content:
        case UploadedVideo(filename=filename, url=url, size_bytes=size):
            if not filename.strip() or not url.strip():
                raise ValidationError(
                    "uploaded video needs a filename and url", field="content"
                )
            if size is not None and size < 0:
                raise ValidationError("size_bytes cannot be negative", field="content")
        case YouTubeVideo(url=url, video_id=video_id):
            if extract_youtube_video_id(url) != video_id:
                raise ValidationError("Invalid YouTube URL", field="youtube_url")

    if course.quiz is not None:
        validate_quiz(course.quiz)

    audience = course.audience
    if not audience.everyone and not (audience.departments or audience.roles):
        raise ValidationError(
            "a restricted audience needs at least one department or role",
            field="audience",
        )

    for i, m in enumerate(course.materials):
        if not m.name.strip() or not m.url.strip():
            raise ValidationError(
                "materials need a name and url", field=f"materials[{i}]"
            )

    if course.deadline is not None and course.deadline < 0:
        raise ValidationError("deadline must be a timestamp", field="deadline")


# ---------------------------------------------------------------------------
# Management (compliance/admin)
# ---------------------------------------------------------------------------


async def create_course(repo: CourseRepo, course: Course) -> Course:
    course = replace(course, quiz=normalize_quiz(course.quiz))
    validate_course(course)
    await repo.add(course)
    logger.info(
        "Course created id=%s title=%r type=%s status=%s by=%s",
        course.id,
        course.title,
        course.content_type,
        course.status,
        course.created_by,
    )
    return course


async def get_course(repo: CourseRepo, course_id: UUID) -> Course:
    course = await repo.get(course_id)
    if course is None:
        raise NotFoundError("Training not found")
    return course


async def update_course(
    repo: CourseRepo,
    course_id: UUID,
    changes: dict[str, Any],
    *,
    updated_by: str,
    now: int | None = None,
) -> Course:
    """Apply a partial update and re-validate the resulting course."""
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")

    current = await get_course(repo, course_id)
    if "quiz" in changes:
        changes = {**changes, "quiz": normalize_quiz(changes["quiz"])}
    updated = replace(
        current,
        **changes,
        updated_by=updated_by,
        updated_at=now if now is not None else epoch_now(),
    )
    validate_course(updated)

    stored = await repo.update(updated)
    if stored is None:
        raise NotFoundError("Training not found")
    logger.info(
        "Course updated id=%s fields=%s by=%s",
        course_id,
        ",".join(sorted(changes)),
        updated_by,
    )
    return stored


async def delete_course(
    courses: CourseRepo, progress: ProgressRepo, course_id: UUID
) -> int:
    """Delete a course and its progress records.  Certificates are kept.

    Returns the number of progress records removed.
    """
    await get_course(courses, course_id)
    removed = await progress.delete_by_course(course_id)
    await courses.delete(course_id)
    logger.info("Course deleted id=%s progress_records=%d", course_id, removed)
    return removed


async def list_all_courses(repo: CourseRepo) -> list[Course]:
    courses = await repo.list_all()
    return sorted(courses, key=lambda c: c.created_at, reverse=True)


# ---------------------------------------------------------------------------
# Learner views
# ---------------------------------------------------------------------------


async def list_accessible_courses(
    repo: CourseRepo, principal: Principal
) -> list[Course]:
    """Active courses the principal may see: mandatory first, then newest."""
    courses = [
        c for c in await repo.list_all() if c.is_active and can_access(principal, c)
    ]
    courses.sort(key=lambda c: (not c.mandatory, -c.created_at))
    return courses


async def get_visible_course(
    repo: CourseRepo, principal: Principal, course_id: UUID
) -> Course:
    """Fetch a course for viewing, applying the audience gate."""
    course = await get_course(repo, course_id)
    ensure_access(principal, course)
    return course


async def get_learnable_course(
    repo: CourseRepo, principal: Principal, course_id: UUID
) -> Course:
    """Fetch a course the principal is about to make progress on.

    Learners can only work on active courses; compliance users may
    preview drafts.
    """
    course = await get_visible_course(repo, principal, course_id)
    if not course.is_active and not principal.is_compliance():
        raise PreconditionFailed(f"course is {course.status}, not active")
    return course
