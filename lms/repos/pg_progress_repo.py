"""PostgreSQL implementation of ProgressRepo.

Quiz attempts live in their own table; they are append-only except when
a restart clears them, so ``update`` deletes attempt rows the record no
longer carries and inserts the ones not stored yet.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import CourseProgressRow, QuizAttemptRow
from lms.models.progress import (
    ProgressRecord,
    ProgressStatus,
    QuizAnswer,
    QuizAttempt,
)
from lms.services.errors import AlreadyExists, ConcurrentModification


class PgProgressRepo:
    """Satisfies the ProgressRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str, course_id: UUID) -> ProgressRecord | None:
        stmt = select(CourseProgressRow).where(
            CourseProgressRow.user_id == user_id,
            CourseProgressRow.course_id == course_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        attempts = await self._attempts_for(
            QuizAttemptRow.user_id == user_id, QuizAttemptRow.course_id == course_id
        )
        return _row_to_record(row, attempts.get((user_id, course_id), []))

    async def add(self, record: ProgressRecord) -> ProgressRecord:
        stored = replace(record, version=1)
        try:
            async with self._session.begin_nested():
                self._session.add(
                    CourseProgressRow(
                        user_id=stored.user_id,
                        course_id=stored.course_id,
                        **_record_values(stored),
                    )
                )
                # Parent row must exist before attempt rows reference it.
                await self._session.flush()
                for attempt in stored.quiz_attempts:
                    self._session.add(_attempt_row(stored, attempt))
        except IntegrityError:
            raise AlreadyExists("progress record already exists") from None
        return stored

    async def update(self, record: ProgressRecord) -> ProgressRecord:
        stored = replace(record, version=record.version + 1)
        stmt = (
            update(CourseProgressRow)
            .where(CourseProgressRow.user_id == record.user_id)
            .where(CourseProgressRow.course_id == record.course_id)
            .where(CourseProgressRow.version == record.version)
            .values(**_record_values(stored))
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrentModification(
                "progress record changed since it was read; reload and retry"
            )

        existing = set(
            (
                await self._session.execute(
                    select(QuizAttemptRow.attempt_number).where(
                        QuizAttemptRow.user_id == record.user_id,
                        QuizAttemptRow.course_id == record.course_id,
                    )
                )
            ).scalars()
        )
        wanted = {a.attempt_number for a in stored.quiz_attempts}
        stale = existing - wanted
        if stale:
            await self._session.execute(
                delete(QuizAttemptRow).where(
                    QuizAttemptRow.user_id == record.user_id,
                    QuizAttemptRow.course_id == record.course_id,
                    QuizAttemptRow.attempt_number.in_(stale),
                )
            )
        for attempt in stored.quiz_attempts:
            if attempt.attempt_number not in existing:
                self._session.add(_attempt_row(stored, attempt))
        await self._session.flush()
        return stored

    async def list_by_user(self, user_id: str) -> list[ProgressRecord]:
        rows = (
            await self._session.execute(
                select(CourseProgressRow).where(CourseProgressRow.user_id == user_id)
            )
        ).scalars().all()
        attempts = await self._attempts_for(QuizAttemptRow.user_id == user_id)
        return [
            _row_to_record(r, attempts.get((r.user_id, r.course_id), [])) for r in rows
        ]

    async def list_by_course(self, course_id: UUID) -> list[ProgressRecord]:
        rows = (
            await self._session.execute(
                select(CourseProgressRow).where(
                    CourseProgressRow.course_id == course_id
                )
            )
        ).scalars().all()
        attempts = await self._attempts_for(QuizAttemptRow.course_id == course_id)
        return [
            _row_to_record(r, attempts.get((r.user_id, r.course_id), [])) for r in rows
        ]

    async def delete_by_course(self, course_id: UUID) -> int:
        await self._session.execute(
            delete(QuizAttemptRow).where(QuizAttemptRow.course_id == course_id)
        )
        result = await self._session.execute(
            delete(CourseProgressRow).where(CourseProgressRow.course_id == course_id)
        )
        return result.rowcount

    async def _attempts_for(
        self, *criteria: Any
    ) -> dict[tuple[str, UUID], list[QuizAttempt]]:
        stmt = (
            select(QuizAttemptRow)
            .where(*criteria)
            .order_by(QuizAttemptRow.attempt_number)
        )
        grouped: dict[tuple[str, UUID], list[QuizAttempt]] = defaultdict(list)
        for row in (await self._session.execute(stmt)).scalars():
            grouped[(row.user_id, row.course_id)].append(_row_to_attempt(row))
        return grouped


def _record_values(record: ProgressRecord) -> dict[str, Any]:
    return {
        "status": record.status.value,
        "progress": record.progress,
        "video_watch_seconds": record.video_watch_seconds,
        "video_completed": record.video_completed,
        "best_score": record.best_score,
        "quiz_passed": record.quiz_passed,
        "started_at": record.started_at,
        "completed_at": record.completed_at,
        "last_accessed_at": record.last_accessed_at,
        "version": record.version,
    }


def _attempt_row(record: ProgressRecord, attempt: QuizAttempt) -> QuizAttemptRow:
    return QuizAttemptRow(
        user_id=record.user_id,
        course_id=record.course_id,
        attempt_number=attempt.attempt_number,
        answers=[
            {
                "question_index": a.question_index,
                "selected_option": a.selected_option,
                "is_correct": a.is_correct,
            }
            for a in attempt.answers
        ],
        score=attempt.score,
        passed=attempt.passed,
        time_spent_minutes=attempt.time_spent_minutes,
        submitted_at=attempt.submitted_at,
    )


def _row_to_attempt(row: QuizAttemptRow) -> QuizAttempt:
    return QuizAttempt(
        attempt_number=row.attempt_number,
        answers=tuple(
            QuizAnswer(
                question_index=a["question_index"],
                selected_option=a["selected_option"],
                is_correct=a["is_correct"],
            )
            for a in row.answers
        ),
        score=row.score,
        passed=row.passed,
        submitted_at=row.submitted_at,
        time_spent_minutes=row.time_spent_minutes,
    )


def _row_to_record(
    row: CourseProgressRow, attempts: list[QuizAttempt]
) -> ProgressRecord:
    return ProgressRecord(
        user_id=row.user_id,
        course_id=row.course_id,
        status=ProgressStatus(row.status),
        progress=row.progress,
        video_watch_seconds=row.video_watch_seconds,
        video_completed=row.video_completed,
        quiz_attempts=tuple(attempts),
        best_score=row.best_score,
        quiz_passed=row.quiz_passed,
        started_at=row.started_at,
        completed_at=row.completed_at,
        last_accessed_at=row.last_accessed_at,
        version=row.version,
    )
