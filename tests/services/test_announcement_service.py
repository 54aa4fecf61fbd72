from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from lms.models.announcement import Announcement
from lms.models.course import Audience, Material
from lms.models.principal import Principal
from lms.repos.announcement_repo import (
    InMemoryAnnouncementReadRepo,
    InMemoryAnnouncementRepo,
)
from lms.services import announcement_service
from lms.services.errors import AccessDenied, NotFoundError, ValidationError

NOW = 1_700_000_000
EMPLOYEE = Principal(user_id="emp-1", roles=frozenset({"employee"}), department="Sales")
FINANCE = Principal(user_id="fin-1", roles=frozenset({"employee"}), department="Finance")
COMPLIANCE = Principal(user_id="officer", roles=frozenset({"compliance"}))


def _announcement(**overrides) -> Announcement:
    fields = dict(
        title="Security Incident Response Protocol",
        content="Familiarize yourself with the new procedures.",
        category="Security",
        created_at=NOW,
        kind="news",
        priority="high",
    )
    fields.update(overrides)
    return Announcement.new(**fields)


def _create(repo, **overrides) -> Announcement:
    return asyncio.run(
        announcement_service.create_announcement(repo, _announcement(**overrides))
    )


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"title": " "}, "title"),
        ({"category": ""}, "category"),
        ({"kind": "blog"}, "type"),
        ({"priority": "urgent"}, "priority"),
        ({"expires_at": NOW}, "expires_at"),
        ({"audience": Audience(everyone=False)}, "audience"),
        ({"attachments": (Material(name="", url="/a.pdf"),)}, "attachments[0]"),
    ],
)
def test_validate_announcement_rejects(overrides: dict, field: str) -> None:
    with pytest.raises(ValidationError) as exc:
        announcement_service.validate_announcement(_announcement(**overrides))
    assert exc.value.field == field


def test_learners_see_published_unexpired_in_audience() -> None:
    repo = InMemoryAnnouncementRepo()
    _create(repo, title="Everyone")
    _create(repo, title="Finance only", audience=Audience(everyone=False, departments=frozenset({"Finance"})))
    _create(repo, title="Expired", expires_at=NOW + 10)
    archived = _create(repo, title="Archived")
    asyncio.run(
        announcement_service.update_announcement(repo, archived.id, {"status": "archived"})
    )

    def titles(p: Principal) -> set[str]:
        items = asyncio.run(announcement_service.list_announcements(repo, p, now=NOW + 100))
        return {a.title for a in items}

    assert titles(EMPLOYEE) == {"Everyone"}
    assert titles(FINANCE) == {"Everyone", "Finance only"}
    assert titles(COMPLIANCE) == {"Everyone", "Finance only", "Expired", "Archived"}


def test_list_filters_and_orders_newest_first() -> None:
    repo = InMemoryAnnouncementRepo()
    _create(repo, title="Old", kind="reminder", category="Training")
    _create(repo, title="New", kind="reminder", category="training", created_at=NOW + 50)
    _create(repo, title="Other", kind="news", priority="low")

    reminders = asyncio.run(
        announcement_service.list_announcements(repo, EMPLOYEE, kind="reminder", now=NOW + 60)
    )
    assert [a.title for a in reminders] == ["New", "Old"]
    by_category = asyncio.run(
        announcement_service.list_announcements(repo, EMPLOYEE, category="TRAINING", now=NOW + 60)
    )
    assert len(by_category) == 2
    low = asyncio.run(
        announcement_service.list_announcements(repo, EMPLOYEE, priority="low", now=NOW + 60)
    )
    assert [a.title for a in low] == ["Other"]


def test_get_visible_announcement_gates() -> None:
    repo = InMemoryAnnouncementRepo()
    gated = _create(repo, audience=Audience(everyone=False, roles=frozenset({"manager"})))
    expired = _create(repo, expires_at=NOW + 1)

    with pytest.raises(AccessDenied):
        asyncio.run(announcement_service.get_visible_announcement(repo, EMPLOYEE, gated.id, now=NOW))
    with pytest.raises(NotFoundError):
        asyncio.run(announcement_service.get_visible_announcement(repo, EMPLOYEE, expired.id, now=NOW + 5))
    with pytest.raises(NotFoundError):
        asyncio.run(announcement_service.get_visible_announcement(repo, EMPLOYEE, uuid4(), now=NOW))
    found = asyncio.run(
        announcement_service.get_visible_announcement(repo, COMPLIANCE, expired.id, now=NOW + 5)
    )
    assert found.id == expired.id


def test_mark_read_is_idempotent() -> None:
    repo, reads = InMemoryAnnouncementRepo(), InMemoryAnnouncementReadRepo()
    announcement = _create(repo)

    first = asyncio.run(
        announcement_service.mark_read(repo, reads, EMPLOYEE, announcement.id, now=NOW + 1)
    )
    again = asyncio.run(
        announcement_service.mark_read(repo, reads, EMPLOYEE, announcement.id, now=NOW + 9)
    )
    assert first == again
    assert again.read_at == NOW + 1

    listed = asyncio.run(announcement_service.list_reads(repo, reads, announcement.id))
    assert [r.user_id for r in listed] == ["emp-1"]
    ids = asyncio.run(announcement_service.read_announcement_ids(reads, "emp-1"))
    assert ids == {announcement.id}


def test_update_rejects_unknown_fields_and_missing() -> None:
    repo = InMemoryAnnouncementRepo()
    announcement = _create(repo)
    with pytest.raises(ValidationError, match="cannot update fields: author"):
        asyncio.run(
            announcement_service.update_announcement(repo, announcement.id, {"author": "x"})
        )
    with pytest.raises(NotFoundError):
        asyncio.run(announcement_service.update_announcement(repo, uuid4(), {"title": "x"}))
