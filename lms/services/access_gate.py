"""Audience-based access decisions for courses and announcements."""

from __future__ import annotations

import logging

from lms.models.course import Audience, Course
from lms.models.principal import Principal
from lms.services.errors import AccessDenied

logger = logging.getLogger(__name__)


def audience_includes(principal: Principal, audience: Audience) -> bool:
    """True if the principal matches the audience.

    Compliance and admin users match every audience.  Everyone else
    matches through the "all" audience, their department, or any of
    their roles.
    """
    if principal.is_compliance():
        return True
    if audience.everyone:
        return True
    if principal.department is not None and principal.department in audience.departments:
        return True
    return principal.has_any_role(audience.roles)


def can_access(principal: Principal, course: Course) -> bool:
    return audience_includes(principal, course.audience)


def ensure_access(principal: Principal, course: Course) -> None:
    if not can_access(principal, course):
        logger.warning(
            "Course access denied user=%s course=%s audience=%s",
            principal.user_id,
            course.id,
            course.audience.label,
        )
        raise AccessDenied("you are not in the audience for this course")
