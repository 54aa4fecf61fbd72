"""PostgreSQL implementations of AnnouncementRepo and AnnouncementReadRepo."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import AnnouncementReadRow, AnnouncementRow
from lms.models.announcement import Announcement, AnnouncementRead
from lms.models.course import Audience, Material, MaterialKind
from lms.services.errors import AlreadyExists


class PgAnnouncementRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, announcement_id: UUID) -> Announcement | None:
        stmt = select(AnnouncementRow).where(AnnouncementRow.id == announcement_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_announcement(row)

    async def list_all(self) -> list[Announcement]:
        rows = (await self._session.execute(select(AnnouncementRow))).scalars().all()
        return [_row_to_announcement(r) for r in rows]

    async def add(self, announcement: Announcement) -> None:
        try:
            async with self._session.begin_nested():
                self._session.add(AnnouncementRow(**_announcement_values(announcement)))
        except IntegrityError:
            raise AlreadyExists("announcement already exists") from None

    async def update(self, announcement: Announcement) -> Announcement | None:
        values = _announcement_values(announcement)
        values.pop("id")
        result = await self._session.execute(
            update(AnnouncementRow)
            .where(AnnouncementRow.id == announcement.id)
            .values(**values)
        )
        if result.rowcount == 0:
            return None
        return announcement


class PgAnnouncementReadRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str, announcement_id: UUID) -> AnnouncementRead | None:
        stmt = select(AnnouncementReadRow).where(
            AnnouncementReadRow.user_id == user_id,
            AnnouncementReadRow.announcement_id == announcement_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_read(row)

    async def add(self, read: AnnouncementRead) -> None:
        try:
            async with self._session.begin_nested():
                self._session.add(AnnouncementReadRow(**asdict(read)))
        except IntegrityError:
            raise AlreadyExists("announcement already read") from None

    async def list_by_announcement(self, announcement_id: UUID) -> list[AnnouncementRead]:
        stmt = select(AnnouncementReadRow).where(
            AnnouncementReadRow.announcement_id == announcement_id
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_read(r) for r in rows]

    async def list_by_user(self, user_id: str) -> list[AnnouncementRead]:
        stmt = select(AnnouncementReadRow).where(AnnouncementReadRow.user_id == user_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_read(r) for r in rows]


def _announcement_values(announcement: Announcement) -> dict[str, Any]:
    return {
        "id": announcement.id,
        "title": announcement.title,
        "content": announcement.content,
        "kind": announcement.kind,
        "category": announcement.category,
        "priority": announcement.priority,
        "status": announcement.status,
        "published_at": announcement.published_at,
        "expires_at": announcement.expires_at,
        "audience_everyone": announcement.audience.everyone,
        "audience_departments": sorted(announcement.audience.departments),
        "audience_roles": sorted(announcement.audience.roles),
        "author": announcement.author,
        "attachments": [
            {"name": a.name, "url": a.url, "kind": a.kind.value}
            for a in announcement.attachments
        ],
        "created_by": announcement.created_by,
        "created_at": announcement.created_at,
        "updated_at": announcement.updated_at,
    }


def _row_to_announcement(row: AnnouncementRow) -> Announcement:
    return Announcement(
        id=row.id,
        title=row.title,
        content=row.content,
        kind=row.kind,
        category=row.category,
        priority=row.priority,
        status=row.status,
        published_at=row.published_at,
        expires_at=row.expires_at,
        audience=Audience(
            everyone=row.audience_everyone,
            departments=frozenset(row.audience_departments or ()),
            roles=frozenset(row.audience_roles or ()),
        ),
        author=row.author,
        attachments=tuple(
            Material(name=a["name"], url=a["url"], kind=MaterialKind(a["kind"]))
            for a in row.attachments or ()
        ),
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_read(row: AnnouncementReadRow) -> AnnouncementRead:
    return AnnouncementRead(
        user_id=row.user_id,
        announcement_id=row.announcement_id,
        read_at=row.read_at,
    )
