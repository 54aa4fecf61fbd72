from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

from lms.models.course import Audience, Material


@dataclass(frozen=True, slots=True)
class Announcement:
    id: UUID
    title: str
    content: str
    kind: str  # announcement|reminder|news
    category: str
    priority: str = "medium"  # low|medium|high
    status: str = "published"  # published|archived
    published_at: int = 0
    expires_at: int | None = None
    audience: Audience = Audience()
    author: str | None = None
    attachments: tuple[Material, ...] = ()
    created_by: str | None = None
    created_at: int = 0
    updated_at: int = 0

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and now > self.expires_at

    @staticmethod
    def new(
        *,
        title: str,
        content: str,
        category: str,
        created_at: int,
        kind: str = "announcement",
        priority: str = "medium",
        expires_at: int | None = None,
        audience: Audience | None = None,
        author: str | None = None,
        attachments: tuple[Material, ...] = (),
        created_by: str | None = None,
    ) -> Announcement:
        return Announcement(
            id=uuid4(),
            title=title,
            content=content,
            kind=kind,
            category=category,
            priority=priority,
            published_at=created_at,
            expires_at=expires_at,
            audience=audience or Audience(),
            author=author,
            attachments=attachments,
            created_by=created_by,
            created_at=created_at,
            updated_at=created_at,
        )


@dataclass(frozen=True, slots=True)
class AnnouncementRead:
    user_id: str
    announcement_id: UUID
    read_at: int
