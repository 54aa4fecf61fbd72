from __future__ import annotations

import pytest

from lms.models.course import Audience, Course, CourseCategory, Interactive
from lms.models.principal import Principal
from lms.services.access_gate import audience_includes, can_access, ensure_access
from lms.services.errors import AccessDenied


def _course(audience: Audience) -> Course:
    return Course.new(
        title="Course",
        description="Description",
        category=CourseCategory.OTHER,
        duration_minutes=5,
        content=Interactive(),
        audience=audience,
        created_at=0,
    )


def _user(*roles: str, department: str | None = None) -> Principal:
    return Principal(user_id="u", roles=frozenset(roles), department=department)


FINANCE_ONLY = Audience(everyone=False, departments=frozenset({"Finance"}))
MANAGERS_ONLY = Audience(everyone=False, roles=frozenset({"manager"}))


@pytest.mark.parametrize(
    "audience,principal,expected",
    [
        (Audience(), _user("employee"), True),
        (FINANCE_ONLY, _user("employee", department="Finance"), True),
        (FINANCE_ONLY, _user("employee", department="Sales"), False),
        (FINANCE_ONLY, _user("employee"), False),
        (MANAGERS_ONLY, _user("employee", "manager"), True),
        (MANAGERS_ONLY, _user("employee", department="Finance"), False),
        (FINANCE_ONLY, _user("compliance"), True),
        (MANAGERS_ONLY, _user("admin"), True),
    ],
)
def test_can_access(audience: Audience, principal: Principal, expected: bool) -> None:
    assert can_access(principal, _course(audience)) is expected


def test_department_match_is_case_sensitive() -> None:
    assert can_access(_user("employee", department="finance"), _course(FINANCE_ONLY)) is False


def test_ensure_access_raises() -> None:
    with pytest.raises(AccessDenied):
        ensure_access(_user("employee"), _course(MANAGERS_ONLY))


def test_audience_includes_is_shared_with_announcements() -> None:
    assert audience_includes(_user("employee", department="Finance"), FINANCE_ONLY)
    assert not audience_includes(_user("employee", department="Sales"), FINANCE_ONLY)
    assert audience_includes(_user("compliance"), MANAGERS_ONLY)
