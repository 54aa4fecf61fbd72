"""Announcements, reminders and news posted by the compliance team.

Learners see published, unexpired announcements whose audience includes
them.  Compliance and admin users see everything.  Reading is recorded
once per user; marking again is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any
from uuid import UUID

from lms.core.clock import epoch_now
from lms.core.metrics import ANNOUNCEMENT_READS
from lms.models.announcement import Announcement, AnnouncementRead
from lms.models.principal import Principal
from lms.repos.announcement_repo import AnnouncementReadRepo, AnnouncementRepo
from lms.services.access_gate import audience_includes
from lms.services.errors import (
    AccessDenied,
    AlreadyExists,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ANNOUNCEMENT_KINDS = ("announcement", "reminder", "news")
PRIORITIES = ("low", "medium", "high")
ANNOUNCEMENT_STATUSES = ("published", "archived")
UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "content",
        "kind",
        "category",
        "priority",
        "status",
        "expires_at",
        "audience",
        "attachments",
    }
)


def validate_announcement(announcement: Announcement) -> None:
    for field in ("title", "content", "category"):
        if not getattr(announcement, field).strip():
            raise ValidationError(f"{field} is required", field=field)
    if len(announcement.title) > 200:
        raise ValidationError("title cannot exceed 200 characters", field="title")
    if announcement.kind not in ANNOUNCEMENT_KINDS:
        raise ValidationError(
            f"type must be one of {', '.join(ANNOUNCEMENT_KINDS)}", field="type"
        )
    if announcement.priority not in PRIORITIES:
        raise ValidationError("priority must be low, medium or high", field="priority")
    if announcement.status not in ANNOUNCEMENT_STATUSES:
        raise ValidationError("status must be published or archived", field="status")
    if (
        announcement.expires_at is not None
        and announcement.expires_at <= announcement.published_at
    ):
        raise ValidationError(
            "expires_at must be after the publication time", field="expires_at"
        )
    audience = announcement.audience
    if not audience.everyone and not (audience.departments or audience.roles):
        raise ValidationError(
            "a restricted audience needs at least one department or role",
            field="audience",
        )
    for i, a in enumerate(announcement.attachments):
        if not a.name.strip() or not a.url.strip():
            raise ValidationError(
                "attachments need a name and url", field=f"attachments[{i}]"
            )


def is_visible(principal: Principal, announcement: Announcement, now: int) -> bool:
    if principal.is_compliance():
        return True
    return (
        announcement.status == "published"
        and not announcement.is_expired(now)
        and audience_includes(principal, announcement.audience)
    )


async def list_announcements(
    repo: AnnouncementRepo,
    principal: Principal,
    *,
    kind: str | None = None,
    category: str | None = None,
    priority: str | None = None,
    status: str | None = None,
    now: int | None = None,
) -> list[Announcement]:
    """Visible announcements, newest first."""
    now = now if now is not None else epoch_now()
    items = [a for a in await repo.list_all() if is_visible(principal, a, now)]
    if kind:
        items = [a for a in items if a.kind == kind]
    if category:
        items = [a for a in items if a.category.lower() == category.lower()]
    if priority:
        items = [a for a in items if a.priority == priority]
    if status:
        items = [a for a in items if a.status == status]
    return sorted(items, key=lambda a: a.published_at, reverse=True)


async def get_announcement(repo: AnnouncementRepo, announcement_id: UUID) -> Announcement:
    announcement = await repo.get(announcement_id)
    if announcement is None:
        raise NotFoundError("Announcement not found")
    return announcement


async def get_visible_announcement(
    repo: AnnouncementRepo,
    principal: Principal,
    announcement_id: UUID,
    *,
    now: int | None = None,
) -> Announcement:
    announcement = await get_announcement(repo, announcement_id)
    now = now if now is not None else epoch_now()
    if principal.is_compliance():
        return announcement
    if announcement.status != "published" or announcement.is_expired(now):
        raise NotFoundError("Announcement not found")
    if not audience_includes(principal, announcement.audience):
        raise AccessDenied("you are not in the audience for this announcement")
    return announcement


async def create_announcement(
    repo: AnnouncementRepo, announcement: Announcement
) -> Announcement:
    validate_announcement(announcement)
    await repo.add(announcement)
    logger.info(
        "Announcement published id=%s type=%s priority=%s by=%s",
        announcement.id,
        announcement.kind,
        announcement.priority,
        announcement.created_by,
    )
    return announcement


async def update_announcement(
    repo: AnnouncementRepo,
    announcement_id: UUID,
    changes: dict[str, Any],
    *,
    now: int | None = None,
) -> Announcement:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")
    current = await get_announcement(repo, announcement_id)
    updated = replace(
        current, **changes, updated_at=now if now is not None else epoch_now()
    )
    validate_announcement(updated)
    stored = await repo.update(updated)
    if stored is None:
        raise NotFoundError("Announcement not found")
    logger.info(
        "Announcement updated id=%s fields=%s", announcement_id, ",".join(sorted(changes))
    )
    return stored


async def mark_read(
    announcements: AnnouncementRepo,
    reads: AnnouncementReadRepo,
    principal: Principal,
    announcement_id: UUID,
    *,
    now: int | None = None,
) -> AnnouncementRead:
    """Record that the principal read the announcement; idempotent."""
    now = now if now is not None else epoch_now()
    await get_visible_announcement(announcements, principal, announcement_id, now=now)
    existing = await reads.get(principal.user_id, announcement_id)
    if existing is not None:
        return existing

    read = AnnouncementRead(
        user_id=principal.user_id, announcement_id=announcement_id, read_at=now
    )
    try:
        await reads.add(read)
    except AlreadyExists:
        # A concurrent request recorded the read first.
        stored = await reads.get(principal.user_id, announcement_id)
        if stored is None:
            raise
        return stored
    ANNOUNCEMENT_READS.inc()
    logger.info(
        "Announcement read user=%s announcement=%s", principal.user_id, announcement_id
    )
    return read


async def list_reads(
    announcements: AnnouncementRepo, reads: AnnouncementReadRepo, announcement_id: UUID
) -> list[AnnouncementRead]:
    await get_announcement(announcements, announcement_id)
    return sorted(
        await reads.list_by_announcement(announcement_id), key=lambda r: r.read_at
    )


async def read_announcement_ids(reads: AnnouncementReadRepo, user_id: str) -> set[UUID]:
    return {r.announcement_id for r in await reads.list_by_user(user_id)}
