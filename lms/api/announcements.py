"""Announcement endpoints.

- GET  /v1/announcements                      visible announcements + read flag
- GET  /v1/announcements/{id}                 one announcement
- POST /v1/announcements                      publish (compliance/admin)
- PUT  /v1/announcements/{id}                 edit or archive (compliance/admin)
- POST /v1/announcements/{id}/read            mark as read, idempotent
- GET  /v1/announcements/{id}/reads           who has read it (compliance/admin)
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from lms.api.courses import AudienceIn, AudienceOut, MaterialIn, MaterialOut
from lms.api.dependencies import ComplianceUser, CurrentUser, Repos
from lms.api.errors import to_http_exception
from lms.core.clock import epoch_now
from lms.models.announcement import Announcement, AnnouncementRead
from lms.models.course import Audience, Material
from lms.services import announcement_service
from lms.services.errors import LmsError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/announcements", tags=["announcements"])

AnnouncementKind = Literal["announcement", "reminder", "news"]
Priority = Literal["low", "medium", "high"]


class AnnouncementCreateIn(BaseModel):
    title: str
    content: str
    category: str
    type: AnnouncementKind = "announcement"
    priority: Priority = "medium"
    expires_at: int | None = None
    audience: AudienceIn = Field(default_factory=AudienceIn)
    attachments: list[MaterialIn] = Field(default_factory=list)


class AnnouncementUpdateIn(BaseModel):
    title: str | None = None
    content: str | None = None
    category: str | None = None
    type: AnnouncementKind | None = None
    priority: Priority | None = None
    status: Literal["published", "archived"] | None = None
    expires_at: int | None = None
    audience: AudienceIn | None = None
    attachments: list[MaterialIn] | None = None


class AnnouncementOut(BaseModel):
    id: str
    title: str
    content: str
    type: str
    category: str
    priority: str
    status: str
    published_at: int
    expires_at: int | None
    audience: AudienceOut
    author: str | None
    attachments: list[MaterialOut]
    created_at: int
    updated_at: int
    read_by_me: bool


class ReadOut(BaseModel):
    user_id: str
    announcement_id: str
    read_at: int


def _audience(body: AudienceIn) -> Audience:
    return Audience(
        everyone=body.everyone,
        departments=frozenset(d.strip() for d in body.departments if d.strip()),
        roles=frozenset(r.strip() for r in body.roles if r.strip()),
    )


def _attachments(items: list[MaterialIn]) -> tuple[Material, ...]:
    return tuple(Material(name=m.name, url=m.url, kind=m.kind) for m in items)


def _announcement_out(a: Announcement, read: bool) -> AnnouncementOut:
    return AnnouncementOut(
        id=str(a.id),
        title=a.title,
        content=a.content,
        type=a.kind,
        category=a.category,
        priority=a.priority,
        status=a.status,
        published_at=a.published_at,
        expires_at=a.expires_at,
        audience=AudienceOut(
            everyone=a.audience.everyone,
            departments=sorted(a.audience.departments),
            roles=sorted(a.audience.roles),
        ),
        author=a.author,
        attachments=[
            MaterialOut(name=m.name, url=m.url, kind=m.kind.value) for m in a.attachments
        ],
        created_at=a.created_at,
        updated_at=a.updated_at,
        read_by_me=read,
    )


def _read_out(read: AnnouncementRead) -> ReadOut:
    return ReadOut(
        user_id=read.user_id,
        announcement_id=str(read.announcement_id),
        read_at=read.read_at,
    )


def _changes_from_update(body: AnnouncementUpdateIn) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for name in body.model_dump(exclude_unset=True):
        value = getattr(body, name)
        if value is None and name != "expires_at":
            raise ValidationError(f"{name} cannot be null", field=name)
        if name == "type":
            changes["kind"] = value
        elif name == "audience":
            changes["audience"] = _audience(value)
        elif name == "attachments":
            changes["attachments"] = _attachments(value)
        elif isinstance(value, str):
            changes[name] = value.strip() if name != "content" else value
        else:
            changes[name] = value
    return changes


@router.get("", response_model=list[AnnouncementOut])
async def list_announcements(
    principal: CurrentUser,
    repos: Repos,
    type_filter: Annotated[str | None, Query(alias="type")] = None,
    category: str | None = None,
    priority: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[AnnouncementOut]:
    items = await announcement_service.list_announcements(
        repos.announcements,
        principal,
        kind=type_filter,
        category=category,
        priority=priority,
        status=status_filter,
    )
    read_ids = await announcement_service.read_announcement_ids(
        repos.announcement_reads, principal.user_id
    )
    return [_announcement_out(a, a.id in read_ids) for a in items]


@router.get("/{announcement_id}", response_model=AnnouncementOut)
async def get_announcement(
    announcement_id: UUID, principal: CurrentUser, repos: Repos
) -> AnnouncementOut:
    try:
        announcement = await announcement_service.get_visible_announcement(
            repos.announcements, principal, announcement_id
        )
    except LmsError as e:
        logger.warning(
            "Announcement view rejected user=%s announcement=%s: %s",
            principal.user_id,
            announcement_id,
            e,
        )
        raise to_http_exception(e) from None
    read = await repos.announcement_reads.get(principal.user_id, announcement_id)
    return _announcement_out(announcement, read is not None)


@router.post("", response_model=AnnouncementOut, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    body: AnnouncementCreateIn, principal: ComplianceUser, repos: Repos
) -> AnnouncementOut:
    announcement = Announcement.new(
        title=body.title.strip(),
        content=body.content,
        category=body.category.strip(),
        created_at=epoch_now(),
        kind=body.type,
        priority=body.priority,
        expires_at=body.expires_at,
        audience=_audience(body.audience),
        author=principal.name or principal.user_id,
        attachments=_attachments(body.attachments),
        created_by=principal.user_id,
    )
    try:
        announcement = await announcement_service.create_announcement(
            repos.announcements, announcement
        )
    except LmsError as e:
        logger.warning("Announcement create rejected user=%s: %s", principal.user_id, e)
        raise to_http_exception(e) from None
    return _announcement_out(announcement, False)


@router.put("/{announcement_id}", response_model=AnnouncementOut)
async def update_announcement(
    announcement_id: UUID,
    body: AnnouncementUpdateIn,
    principal: ComplianceUser,
    repos: Repos,
) -> AnnouncementOut:
    try:
        announcement = await announcement_service.update_announcement(
            repos.announcements, announcement_id, _changes_from_update(body)
        )
    except LmsError as e:
        logger.warning(
            "Announcement update rejected user=%s announcement=%s: %s",
            principal.user_id,
            announcement_id,
            e,
        )
        raise to_http_exception(e) from None
    read = await repos.announcement_reads.get(principal.user_id, announcement_id)
    return _announcement_out(announcement, read is not None)


@router.post("/{announcement_id}/read", response_model=ReadOut)
async def mark_announcement_read(
    announcement_id: UUID, principal: CurrentUser, repos: Repos
) -> ReadOut:
    try:
        read = await announcement_service.mark_read(
            repos.announcements, repos.announcement_reads, principal, announcement_id
        )
    except LmsError as e:
        logger.warning(
            "Mark read rejected user=%s announcement=%s: %s",
            principal.user_id,
            announcement_id,
            e,
        )
        raise to_http_exception(e) from None
    return _read_out(read)


@router.get("/{announcement_id}/reads", response_model=list[ReadOut])
async def list_announcement_reads(
    announcement_id: UUID, _principal: ComplianceUser, repos: Repos
) -> list[ReadOut]:
    try:
        reads = await announcement_service.list_reads(
            repos.announcements, repos.announcement_reads, announcement_id
        )
    except LmsError as e:
        raise to_http_exception(e) from None
    return [_read_out(r) for r in reads]
