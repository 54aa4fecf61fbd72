"""Course catalog and learner training endpoints.

Learners see active courses whose audience includes them; compliance
and admin users manage the catalog.  Every progress mutation drops the
cached statistics for its course.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, HTTPException, Response, status
from pydantic import BaseModel, Field

from lms.api.dependencies import Cache, ComplianceUser, CurrentUser, Repos
from lms.api.errors import to_http_exception
from lms.api.progress import ProgressOut, progress_out
from lms.core.clock import epoch_now
from lms.core.config import SETTINGS
from lms.models.course import (
    Audience,
    ContentType,
    Course,
    CourseCategory,
    CourseContent,
    CourseStatus,
    Interactive,
    Material,
    MaterialKind,
    Quiz,
    QuizQuestion,
    UploadedVideo,
    YouTubeVideo,
)
from lms.models.progress import ProgressRecord
from lms.services import (
    catalog_service,
    certificate_service,
    progress_service,
    report_service,
)
from lms.services.errors import LmsError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/courses", tags=["courses"])


# --- Request schemas --------------------------------------------------------


class QuizQuestionIn(BaseModel):
    question: str
    options: list[str]
    correct_option: int
    explanation: str | None = None


class QuizIn(BaseModel):
    questions: list[QuizQuestionIn] = Field(default_factory=list)
    passing_score: int = 70
    max_attempts: int = 3
    allow_retakes: bool = True
    time_limit_minutes: int = 30


class AudienceIn(BaseModel):
    everyone: bool = True
    departments: list[str] = Field(default_factory=list)
    roles: list[str] = Field(default_factory=list)


class MaterialIn(BaseModel):
    name: str
    url: str
    kind: MaterialKind = MaterialKind.OTHER


class ContentIn(BaseModel):
    type: ContentType
    youtube_url: str | None = None
    video_url: str | None = None
    video_filename: str | None = None
    video_size_bytes: int | None = None


class CourseCreateIn(BaseModel):
    title: str
    description: str
    category: CourseCategory
    duration_minutes: int
    content: ContentIn
    status: CourseStatus = CourseStatus.DRAFT
    mandatory: bool = False
    deadline: int | None = None
    quiz: QuizIn | None = None
    audience: AudienceIn = Field(default_factory=AudienceIn)
    materials: list[MaterialIn] = Field(default_factory=list)


class CourseUpdateIn(BaseModel):
    title: str | None = None
    description: str | None = None
    category: CourseCategory | None = None
    duration_minutes: int | None = None
    content: ContentIn | None = None
    status: CourseStatus | None = None
    mandatory: bool | None = None
    deadline: int | None = None
    quiz: QuizIn | None = None
    audience: AudienceIn | None = None
    materials: list[MaterialIn] | None = None


class VideoProgressIn(BaseModel):
    watched_seconds: float = Field(allow_inf_nan=False)
    total_duration_seconds: float = Field(allow_inf_nan=False)


class ProgressReportIn(BaseModel):
    progress: int


class QuizSubmitIn(BaseModel):
    answers: list[int | None]
    time_spent_minutes: int = 0


# --- Response schemas -------------------------------------------------------


class AudienceOut(BaseModel):
    everyone: bool
    departments: list[str]
    roles: list[str]


class MaterialOut(BaseModel):
    name: str
    url: str
    kind: str


class QuizQuestionAdminOut(BaseModel):
    question: str
    options: list[str]
    correct_option: int
    explanation: str | None


class QuizAdminOut(BaseModel):
    questions: list[QuizQuestionAdminOut]
    passing_score: int
    max_attempts: int
    allow_retakes: bool
    time_limit_minutes: int


class CourseOut(BaseModel):
    id: str
    title: str
    description: str
    category: str
    duration_minutes: int
    content_type: str
    content: dict[str, Any]
    status: str
    mandatory: bool
    deadline: int | None
    audience: AudienceOut
    materials: list[MaterialOut]
    quiz_question_count: int
    passing_score: int | None
    created_at: int
    updated_at: int


class CourseAdminOut(CourseOut):
    quiz: QuizAdminOut | None
    created_by: str | None
    updated_by: str | None


class CourseWithProgressOut(CourseOut):
    my_progress: ProgressOut | None


class QuizQuestionOut(BaseModel):
    index: int
    question: str
    options: list[str]


class QuizOut(BaseModel):
    course_id: str
    questions: list[QuizQuestionOut]
    passing_score: int
    max_attempts: int
    allow_retakes: bool
    time_limit_minutes: int
    attempts_used: int
    can_take_quiz: bool
    reason: str | None


class QuizResultOut(BaseModel):
    attempt_number: int
    score: int
    passed: bool
    passing_score: int
    correct_answers: int
    total_questions: int
    results: list[bool]
    message: str
    progress: ProgressOut


class CertificateIssuedOut(BaseModel):
    certificate_id: str
    course_id: str
    course_title: str
    user_name: str
    completion_date: int
    score: int
    issued_at: int
    created: bool


class CourseStatsOut(BaseModel):
    course_id: str
    total_learners: int
    completed_learners: int
    completion_rate: float
    certificates_issued: int
    valid_certificates: int
    by_status: dict[str, dict[str, float]]


# --- Conversions -----------------------------------------------------------


def _content_from_in(content: ContentIn) -> CourseContent:
    if content.type == ContentType.YOUTUBE:
        if not content.youtube_url:
            raise ValidationError("youtube_url is required", field="youtube_url")
        return catalog_service.youtube_content(content.youtube_url)
    if content.type == ContentType.VIDEO:
        if not content.video_url or not content.video_filename:
            raise ValidationError(
                "video_url and video_filename are required", field="content"
            )
        return UploadedVideo(
            filename=content.video_filename,
            url=content.video_url,
            size_bytes=content.video_size_bytes,
        )
    return Interactive()


def _quiz_from_in(quiz: QuizIn | None) -> Quiz | None:
    if quiz is None:
        return None
    return Quiz(
        questions=tuple(
            QuizQuestion(
                question=q.question,
                options=tuple(q.options),
                correct_option=q.correct_option,
                explanation=q.explanation,
            )
            for q in quiz.questions
        ),
        passing_score=quiz.passing_score,
        max_attempts=quiz.max_attempts,
        allow_retakes=quiz.allow_retakes,
        time_limit_minutes=quiz.time_limit_minutes,
    )


def _audience_from_in(audience: AudienceIn) -> Audience:
    return Audience(
        everyone=audience.everyone,
        departments=frozenset(d.strip() for d in audience.departments if d.strip()),
        roles=frozenset(r.strip() for r in audience.roles if r.strip()),
    )


def _materials_from_in(materials: list[MaterialIn]) -> tuple[Material, ...]:
    return tuple(Material(name=m.name, url=m.url, kind=m.kind) for m in materials)


_NULLABLE_FIELDS = {"deadline", "quiz"}


def _changes_from_update(body: CourseUpdateIn) -> dict[str, Any]:
    raw = body.model_dump(exclude_unset=True)
    changes: dict[str, Any] = {}
    for name in raw:
        value = getattr(body, name)
        if value is None and name not in _NULLABLE_FIELDS:
            raise ValidationError(f"{name} cannot be null", field=name)
        if name == "content":
            changes[name] = _content_from_in(value)
        elif name == "quiz":
            changes[name] = _quiz_from_in(value)
        elif name == "audience":
            changes[name] = _audience_from_in(value)
        elif name == "materials":
            changes[name] = _materials_from_in(value)
        else:
            changes[name] = value
    return changes


def _content_out(content: CourseContent) -> dict[str, Any]:
    match content:
        case UploadedVideo(filename=filename, url=url, size_bytes=size):
            return {"video_filename": filename, "video_url": url, "video_size_bytes": size}
        case YouTubeVideo(url=url, video_id=video_id):
            return {"youtube_url": url, "youtube_video_id": video_id}
        case _:
            return {}


def _course_fields(course: Course) -> dict[str, Any]:
    return {
        "id": str(course.id),
        "title": course.title,
        "description": course.description,
        "category": course.category.value,
        "duration_minutes": course.duration_minutes,
        "content_type": course.content_type.value,
        "content": _content_out(course.content),
        "status": course.status.value,
        "mandatory": course.mandatory,
        "deadline": course.deadline,
        "audience": AudienceOut(
            everyone=course.audience.everyone,
            departments=sorted(course.audience.departments),
            roles=sorted(course.audience.roles),
        ),
        "materials": [
            MaterialOut(name=m.name, url=m.url, kind=m.kind.value)
            for m in course.materials
        ],
        "quiz_question_count": course.quiz.question_count if course.quiz else 0,
        "passing_score": course.quiz.passing_score if course.quiz else None,
        "created_at": course.created_at,
        "updated_at": course.updated_at,
    }


def _course_admin_out(course: Course) -> CourseAdminOut:
    quiz = None
    if course.quiz is not None:
        quiz = QuizAdminOut(
            questions=[
                QuizQuestionAdminOut(
                    question=q.question,
                    options=list(q.options),
                    correct_option=q.correct_option,
                    explanation=q.explanation,
                )
                for q in course.quiz.questions
            ],
            passing_score=course.quiz.passing_score,
            max_attempts=course.quiz.max_attempts,
            allow_retakes=course.quiz.allow_retakes,
            time_limit_minutes=course.quiz.time_limit_minutes,
        )
    return CourseAdminOut(
        **_course_fields(course),
        quiz=quiz,
        created_by=course.created_by,
        updated_by=course.updated_by,
    )


def _course_with_progress(
    course: Course, record: ProgressRecord | None
) -> CourseWithProgressOut:
    return CourseWithProgressOut(
        **_course_fields(course),
        my_progress=progress_out(record, course) if record else None,
    )


def _rejected(action: str, user_id: str, course_id: UUID | None, e: LmsError) -> HTTPException:
    logger.warning("%s rejected user=%s course=%s: %s", action, user_id, course_id, e)
    return to_http_exception(e)


# --- Learner endpoints ------------------------------------------------------


@router.get("", response_model=list[CourseWithProgressOut])
async def list_my_courses(
    principal: CurrentUser, repos: Repos
) -> list[CourseWithProgressOut]:
    courses = await catalog_service.list_accessible_courses(repos.courses, principal)
    records = {
        r.course_id: r
        for r in await progress_service.list_user_progress(
            repos.progress, principal.user_id
        )
    }
    return [_course_with_progress(c, records.get(c.id)) for c in courses]


@router.get("/admin", response_model=list[CourseAdminOut])
async def list_all_courses(
    _principal: ComplianceUser, repos: Repos
) -> list[CourseAdminOut]:
    return [_course_admin_out(c) for c in await catalog_service.list_all_courses(repos.courses)]


@router.get("/{course_id}", response_model=CourseWithProgressOut)
async def get_course(
    course_id: UUID, principal: CurrentUser, repos: Repos
) -> CourseWithProgressOut:
    try:
        course = await catalog_service.get_visible_course(
            repos.courses, principal, course_id
        )
    except LmsError as e:
        raise _rejected("Course view", principal.user_id, course_id, e) from None
    record = await progress_service.get_progress(
        repos.progress, principal.user_id, course_id
    )
    return _course_with_progress(course, record)


@router.post("/{course_id}/start", response_model=ProgressOut)
async def start_course(
    course_id: UUID, principal: CurrentUser, repos: Repos, cache: Cache
) -> ProgressOut:
    try:
        course = await catalog_service.get_learnable_course(
            repos.courses, principal, course_id
        )
        record = await progress_service.start_course(
            repos.progress, principal.user_id, course
        )
    except LmsError as e:
        raise _rejected("Start course", principal.user_id, course_id, e) from None
    await report_service.invalidate_course_stats(cache, course_id)
    return progress_out(record, course)


@router.put("/{course_id}/video-progress", response_model=ProgressOut)
async def update_video_progress(
    course_id: UUID,
    body: VideoProgressIn,
    principal: CurrentUser,
    repos: Repos,
    cache: Cache,
) -> ProgressOut:
    try:
        course = await catalog_service.get_learnable_course(
            repos.courses, principal, course_id
        )
        record = await progress_service.update_video_progress(
            repos.progress,
            principal.user_id,
            course,
            body.watched_seconds,
            body.total_duration_seconds,
        )
    except LmsError as e:
        raise _rejected("Video progress", principal.user_id, course_id, e) from None
    await report_service.invalidate_course_stats(cache, course_id)
    return progress_out(record, course)


@router.put("/{course_id}/progress", response_model=ProgressOut)
async def report_progress(
    course_id: UUID,
    body: ProgressReportIn,
    principal: CurrentUser,
    repos: Repos,
    cache: Cache,
) -> ProgressOut:
    try:
        course = await catalog_service.get_learnable_course(
            repos.courses, principal, course_id
        )
        record = await progress_service.report_progress(
            repos.progress, principal.user_id, course, body.progress
        )
    except LmsError as e:
        raise _rejected("Progress report", principal.user_id, course_id, e) from None
    await report_service.invalidate_course_stats(cache, course_id)
    return progress_out(record, course)


@router.get("/{course_id}/quiz", response_model=QuizOut)
async def get_quiz(course_id: UUID, principal: CurrentUser, repos: Repos) -> QuizOut:
    """Quiz questions without the answers, plus the learner's eligibility."""
    try:
        course = await catalog_service.get_learnable_course(
            repos.courses, principal, course_id
        )
    except LmsError as e:
        raise _rejected("Quiz view", principal.user_id, course_id, e) from None
    quiz = course.quiz
    if quiz is None or not course.has_quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")

    record = await progress_service.get_progress(
        repos.progress, principal.user_id, course_id
    )
    reason = progress_service.quiz_eligibility(record, course)
    return QuizOut(
        course_id=str(course.id),
        questions=[
            QuizQuestionOut(index=i, question=q.question, options=list(q.options))
            for i, q in enumerate(quiz.questions)
        ],
        passing_score=quiz.passing_score,
        max_attempts=quiz.max_attempts,
        allow_retakes=quiz.allow_retakes,
        time_limit_minutes=quiz.time_limit_minutes,
        attempts_used=record.attempt_count if record else 0,
        can_take_quiz=reason is None,
        reason=reason,
    )


@router.post("/{course_id}/quiz/submit", response_model=QuizResultOut)
async def submit_quiz(
    course_id: UUID,
    body: QuizSubmitIn,
    principal: CurrentUser,
    repos: Repos,
    cache: Cache,
) -> QuizResultOut:
    try:
        course = await catalog_service.get_learnable_course(
            repos.courses, principal, course_id
        )
        record, attempt = await progress_service.submit_quiz(
            repos.progress,
            principal.user_id,
            course,
            body.answers,
            time_spent_minutes=body.time_spent_minutes,
        )
    except LmsError as e:
        raise _rejected("Quiz submission", principal.user_id, course_id, e) from None
    await report_service.invalidate_course_stats(cache, course_id)

    passing_score = course.quiz.passing_score if course.quiz else 0
    correct = sum(1 for a in attempt.answers if a.is_correct)
    return QuizResultOut(
        attempt_number=attempt.attempt_number,
        score=attempt.score,
        passed=attempt.passed,
        passing_score=passing_score,
        correct_answers=correct,
        total_questions=len(attempt.answers),
        results=[a.is_correct for a in attempt.answers],
        message=(
            "Quiz passed successfully!"
            if attempt.passed
            else "Quiz failed. Please review the material and try again."
        ),
        progress=progress_out(record, course),
    )


@router.post("/{course_id}/certificate", response_model=CertificateIssuedOut)
async def issue_certificate(
    course_id: UUID,
    principal: CurrentUser,
    repos: Repos,
    cache: Cache,
    response: Response,
) -> CertificateIssuedOut:
    try:
        course = await catalog_service.get_visible_course(
            repos.courses, principal, course_id
        )
        certificate, created = await certificate_service.issue_certificate(
            repos.certificates,
            repos.progress,
            principal,
            course,
            issuer=SETTINGS.certificate_issuer,
            validity_days=SETTINGS.certificate_validity_days,
        )
    except LmsError as e:
        raise _rejected("Certificate", principal.user_id, course_id, e) from None
    if created:
        response.status_code = status.HTTP_201_CREATED
        await report_service.invalidate_course_stats(cache, course_id)
    return CertificateIssuedOut(
        certificate_id=certificate.certificate_id,
        course_id=str(certificate.course_id),
        course_title=certificate.course_title,
        user_name=certificate.user_name,
        completion_date=certificate.completion_date,
        score=certificate.score,
        issued_at=certificate.issued_at,
        created=created,
    )


# --- Management endpoints (compliance/admin) --------------------------------


@router.post("", response_model=CourseAdminOut, status_code=status.HTTP_201_CREATED)
async def create_course(
    body: CourseCreateIn, principal: ComplianceUser, repos: Repos
) -> CourseAdminOut:
    try:
        course = Course.new(
            title=body.title.strip(),
            description=body.description.strip(),
            category=body.category,
            duration_minutes=body.duration_minutes,
            content=_content_from_in(body.content),
            created_at=epoch_now(),
            status=body.status,
            mandatory=body.mandatory,
            deadline=body.deadline,
            quiz=_quiz_from_in(body.quiz),
            audience=_audience_from_in(body.audience),
            materials=_materials_from_in(body.materials),
            created_by=principal.user_id,
        )
        course = await catalog_service.create_course(repos.courses, course)
    except LmsError as e:
        raise _rejected("Course create", principal.user_id, None, e) from None
    return _course_admin_out(course)


@router.put("/{course_id}", response_model=CourseAdminOut)
async def update_course(
    course_id: UUID, body: CourseUpdateIn, principal: ComplianceUser, repos: Repos
) -> CourseAdminOut:
    try:
        course = await catalog_service.update_course(
            repos.courses,
            course_id,
            _changes_from_update(body),
            updated_by=principal.user_id,
        )
    except LmsError as e:
        raise _rejected("Course update", principal.user_id, course_id, e) from None
    return _course_admin_out(course)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    course_id: UUID, principal: ComplianceUser, repos: Repos, cache: Cache
) -> Response:
    try:
        await catalog_service.delete_course(repos.courses, repos.progress, course_id)
    except LmsError as e:
        raise _rejected("Course delete", principal.user_id, course_id, e) from None
    await report_service.invalidate_course_stats(cache, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{course_id}/stats", response_model=CourseStatsOut)
async def course_stats(
    course_id: UUID, principal: ComplianceUser, repos: Repos, cache: Cache
) -> CourseStatsOut:
    try:
        await catalog_service.get_course(repos.courses, course_id)
    except LmsError as e:
        raise _rejected("Course stats", principal.user_id, course_id, e) from None
    stats = await report_service.course_stats(
        cache, repos.progress, repos.certificates, course_id
    )
    return CourseStatsOut(
        course_id=stats.course_id,
        total_learners=stats.total_learners,
        completed_learners=stats.completed_learners,
        completion_rate=stats.completion_rate,
        certificates_issued=stats.certificates_issued,
        valid_certificates=stats.valid_certificates,
        by_status={
            k: {"count": v.count, "average_score": v.average_score}
            for k, v in stats.by_status.items()
        },
    )


@router.post("/{course_id}/progress/{user_id}/restart", response_model=ProgressOut)
async def restart_course(
    course_id: UUID,
    user_id: str,
    principal: ComplianceUser,
    repos: Repos,
    cache: Cache,
) -> ProgressOut:
    try:
        course = await catalog_service.get_course(repos.courses, course_id)
        record = await progress_service.restart_course(repos.progress, user_id, course)
    except LmsError as e:
        raise _rejected("Restart", principal.user_id, course_id, e) from None
    logger.info(
        "Progress restarted by=%s user=%s course=%s", principal.user_id, user_id, course_id
    )
    await report_service.invalidate_course_stats(cache, course_id)
    return progress_out(record, course)
