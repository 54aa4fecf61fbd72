from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms.models.announcement import Announcement, AnnouncementRead
from lms.services.errors import AlreadyExists


class AnnouncementRepo(Protocol):
    async def get(self, announcement_id: UUID) -> Announcement | None: ...
    async def list_all(self) -> list[Announcement]: ...
    async def add(self, announcement: Announcement) -> None: ...
    async def update(self, announcement: Announcement) -> Announcement | None: ...


class AnnouncementReadRepo(Protocol):
    async def get(self, user_id: str, announcement_id: UUID) -> AnnouncementRead | None: ...
    async def add(self, read: AnnouncementRead) -> None: ...
    async def list_by_announcement(self, announcement_id: UUID) -> list[AnnouncementRead]: ...
    async def list_by_user(self, user_id: str) -> list[AnnouncementRead]: ...


class InMemoryAnnouncementRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Announcement] = {}

    async def get(self, announcement_id: UUID) -> Announcement | None:
        return self._by_id.get(announcement_id)

    async def list_all(self) -> list[Announcement]:
        return list(self._by_id.values())

    async def add(self, announcement: Announcement) -> None:
        if announcement.id in self._by_id:
            raise AlreadyExists("announcement already exists")
        self._by_id[announcement.id] = announcement

    async def update(self, announcement: Announcement) -> Announcement | None:
        if announcement.id not in self._by_id:
            return None
        self._by_id[announcement.id] = announcement
        return announcement


class InMemoryAnnouncementReadRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, UUID], AnnouncementRead] = {}

    async def get(self, user_id: str, announcement_id: UUID) -> AnnouncementRead | None:
        return self._store.get((user_id, announcement_id))

    async def add(self, read: AnnouncementRead) -> None:
        key = (read.user_id, read.announcement_id)
        if key in self._store:
            raise AlreadyExists("announcement already read")
        self._store[key] = read

    async def list_by_announcement(self, announcement_id: UUID) -> list[AnnouncementRead]:
        return [r for r in self._store.values() if r.announcement_id == announcement_id]

    async def list_by_user(self, user_id: str) -> list[AnnouncementRead]:
        return [r for r in self._store.values() if r.user_id == user_id]
