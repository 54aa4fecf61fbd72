"""PostgreSQL implementation of CertificateRepo."""

from __future__ import annotations

from dataclasses import asdict
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import CertificateRow
from lms.models.certificate import Certificate
from lms.services.errors import AlreadyExists


class PgCertificateRepo:
    """Satisfies the CertificateRepo Protocol using PostgreSQL.

    The (user_id, course_id) unique constraint is what makes concurrent
    issuance safe: the losing insert surfaces as AlreadyExists.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_for(self, user_id: str, course_id: UUID) -> Certificate | None:
        stmt = select(CertificateRow).where(
            CertificateRow.user_id == user_id, CertificateRow.course_id == course_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_certificate(row)

    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None:
        stmt = select(CertificateRow).where(
            CertificateRow.certificate_id == certificate_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_certificate(row)

    async def add(self, certificate: Certificate) -> None:
        try:
            async with self._session.begin_nested():
                self._session.add(CertificateRow(**asdict(certificate)))
        except IntegrityError:
            raise AlreadyExists("certificate already issued for this course") from None

    async def update(self, certificate: Certificate) -> Certificate | None:
        stmt = (
            update(CertificateRow)
            .where(CertificateRow.certificate_id == certificate.certificate_id)
            .values(
                is_valid=certificate.is_valid,
                valid_until=certificate.valid_until,
                download_count=certificate.download_count,
                last_downloaded_at=certificate.last_downloaded_at,
                invalidation_reason=certificate.invalidation_reason,
                invalidated_at=certificate.invalidated_at,
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return certificate

    async def list_by_user(self, user_id: str) -> list[Certificate]:
        stmt = (
            select(CertificateRow)
            .where(CertificateRow.user_id == user_id)
            .order_by(CertificateRow.issued_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_certificate(r) for r in rows]

    async def list_by_course(self, course_id: UUID) -> list[Certificate]:
        stmt = select(CertificateRow).where(CertificateRow.course_id == course_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_certificate(r) for r in rows]


def _row_to_certificate(row: CertificateRow) -> Certificate:
    return Certificate(
        id=row.id,
        certificate_id=row.certificate_id,
        user_id=row.user_id,
        course_id=row.course_id,
        user_name=row.user_name,
        course_title=row.course_title,
        completion_date=row.completion_date,
        score=row.score,
        passing_score=row.passing_score,
        duration_minutes=row.duration_minutes,
        category=row.category,
        content_type=row.content_type,
        quiz_attempts=row.quiz_attempts,
        issued_by=row.issued_by,
        issued_at=row.issued_at,
        valid_until=row.valid_until,
        is_valid=row.is_valid,
        download_count=row.download_count,
        last_downloaded_at=row.last_downloaded_at,
        invalidation_reason=row.invalidation_reason,
        invalidated_at=row.invalidated_at,
    )
