"""PostgreSQL implementation of CourseRepo."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import CourseRow
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
from lms.services.errors import AlreadyExists


class PgCourseRepo:
    """Satisfies the CourseRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, course_id: UUID) -> Course | None:
        stmt = select(CourseRow).where(CourseRow.id == course_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_course(row)

    async def list_all(self) -> list[Course]:
        rows = (await self._session.execute(select(CourseRow))).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def add(self, course: Course) -> None:
        try:
            async with self._session.begin_nested():
                self._session.add(CourseRow(id=course.id, **_course_values(course)))
        except IntegrityError:
            raise AlreadyExists("course already exists") from None

    async def update(self, course: Course) -> Course | None:
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course.id)
            .values(**_course_values(course))
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return course

    async def delete(self, course_id: UUID) -> bool:
        result = await self._session.execute(
            delete(CourseRow).where(CourseRow.id == course_id)
        )
        return result.rowcount > 0


# --- Row <-> model conversion ---


def _content_to_json(content: CourseContent) -> dict[str, Any]:
    match content:
        case UploadedVideo(filename=filename, url=url, size_bytes=size):
            return {"filename": filename, "url": url, "size_bytes": size}
        case YouTubeVideo(url=url, video_id=video_id):
            return {"url": url, "video_id": video_id}
        case _:
            return {}


def _content_from_json(content_type: str, data: dict[str, Any]) -> CourseContent:
    if content_type == ContentType.VIDEO:
        return UploadedVideo(
            filename=data["filename"], url=data["url"], size_bytes=data.get("size_bytes")
        )
    if content_type == ContentType.YOUTUBE:
        return YouTubeVideo(url=data["url"], video_id=data["video_id"])
    return Interactive()


def _quiz_to_json(quiz: Quiz | None) -> dict[str, Any] | None:
    if quiz is None:
        return None
    return {
        "questions": [
            {
                "question": q.question,
                "options": list(q.options),
                "correct_option": q.correct_option,
                "explanation": q.explanation,
            }
            for q in quiz.questions
        ],
        "passing_score": quiz.passing_score,
        "max_attempts": quiz.max_attempts,
        "allow_retakes": quiz.allow_retakes,
        "time_limit_minutes": quiz.time_limit_minutes,
    }


def _quiz_from_json(data: dict[str, Any] | None) -> Quiz | None:
    if not data:
        return None
    return Quiz(
        questions=tuple(
            QuizQuestion(
                question=q["question"],
                options=tuple(q["options"]),
                correct_option=q["correct_option"],
                explanation=q.get("explanation"),
            )
            for q in data["questions"]
        ),
        passing_score=data["passing_score"],
        max_attempts=data["max_attempts"],
        allow_retakes=data["allow_retakes"],
        time_limit_minutes=data["time_limit_minutes"],
    )


def _course_values(course: Course) -> dict[str, Any]:
    return {
        "title": course.title,
        "description": course.description,
        "category": course.category.value,
        "duration_minutes": course.duration_minutes,
        "content_type": course.content_type.value,
        "content": _content_to_json(course.content),
        "status": course.status.value,
        "mandatory": course.mandatory,
        "deadline": course.deadline,
        "quiz": _quiz_to_json(course.quiz),
        "audience_everyone": course.audience.everyone,
        "audience_departments": sorted(course.audience.departments),
        "audience_roles": sorted(course.audience.roles),
        "materials": [
            {"name": m.name, "url": m.url, "kind": m.kind.value}
            for m in course.materials
        ],
        "created_by": course.created_by,
        "updated_by": course.updated_by,
        "created_at": course.created_at,
        "updated_at": course.updated_at,
    }


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        title=row.title,
        description=row.description,
        category=CourseCategory(row.category),
        duration_minutes=row.duration_minutes,
        content=_content_from_json(row.content_type, row.content or {}),
        status=CourseStatus(row.status),
        mandatory=row.mandatory,
        deadline=row.deadline,
        quiz=_quiz_from_json(row.quiz),
        audience=Audience(
            everyone=row.audience_everyone,
            departments=frozenset(row.audience_departments or ()),
            roles=frozenset(row.audience_roles or ()),
        ),
        materials=tuple(
            Material(name=m["name"], url=m["url"], kind=MaterialKind(m["kind"]))
            for m in row.materials or ()
        ),
        created_by=row.created_by,
        updated_by=row.updated_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
