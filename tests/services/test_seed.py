from __future__ import annotations

import asyncio

from lms.models.course import CourseStatus
from lms.models.principal import Principal
from lms.repos.registry import Repositories
from lms.services import catalog_service
from lms.services.seed import seed_demo_data


def test_seed_creates_catalog_once() -> None:
    repos = Repositories.in_memory()
    assert asyncio.run(seed_demo_data(repos, now=1_700_000_000)) == 6
    assert asyncio.run(seed_demo_data(repos)) == 0
    courses = asyncio.run(repos.courses.list_all())
    assert len(courses) == 3
    assert all(c.status == CourseStatus.ACTIVE for c in courses)
    assert len(asyncio.run(repos.policies.list_all())) == 2
    assert len(asyncio.run(repos.announcements.list_all())) == 1


def test_seeded_finance_course_is_department_gated() -> None:
    repos = Repositories.in_memory()
    asyncio.run(seed_demo_data(repos))
    sales = Principal(user_id="s", roles=frozenset({"employee"}), department="Sales")
    finance = Principal(user_id="f", roles=frozenset({"employee"}), department="Finance")

    def titles(p: Principal) -> set[str]:
        return {c.title for c in asyncio.run(catalog_service.list_accessible_courses(repos.courses, p))}

    assert "Finance Department Training" not in titles(sales)
    assert "Finance Department Training" in titles(finance)
