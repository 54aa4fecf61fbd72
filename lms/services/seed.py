"""Demo catalog for local development (SEED_DEMO_DATA=true)."""

from __future__ import annotations

import logging

from lms.core.clock import epoch_now
from lms.models.announcement import Announcement
from lms.models.course import (
    Audience,
    Course,
    CourseCategory,
    CourseStatus,
    Quiz,
    QuizQuestion,
)
from lms.models.policy import Policy
from lms.repos.registry import Repositories
from lms.services import announcement_service, catalog_service, policy_service

logger = logging.getLogger(__name__)

_DAY = 86_400
_SEEDED_BY = "seed"


def _demo_courses(now: int) -> list[Course]:
    return [
        Course.new(
            title="Data Protection Fundamentals",
            description=(
                "Learn the basics of data protection, privacy laws, and how to "
                "handle sensitive information in the workplace."
            ),
            category=CourseCategory.COMPLIANCE,
            duration_minutes=45,
            content=catalog_service.youtube_content(
                "https://www.youtube.com/watch?v=TE4UW7MXBGc"
            ),
            status=CourseStatus.ACTIVE,
            mandatory=True,
            deadline=now + 30 * _DAY,
            quiz=Quiz(
                questions=(
                    QuizQuestion(
                        question="What is the primary purpose of data protection laws?",
                        options=(
                            "To make business operations difficult",
                            "To protect individual privacy and personal data",
                            "To increase company profits",
                        ),
                        correct_option=1,
                    ),
                    QuizQuestion(
                        question="Which of the following is considered personal data?",
                        options=(
                            "Employee ID numbers",
                            "Email addresses",
                            "Phone numbers",
                            "All of the above",
                        ),
                        correct_option=3,
                        explanation="Each of these can identify an individual.",
                    ),
                ),
                passing_score=70,
                time_limit_minutes=10,
            ),
            created_by=_SEEDED_BY,
            created_at=now,
        ),
        Course.new(
            title="Workplace Safety Guidelines",
            description="Safety procedures that keep the workplace safe for everyone.",
            category=CourseCategory.MANDATORY,
            duration_minutes=25,
            content=catalog_service.youtube_content("https://youtu.be/dQw4w9WgXcQ"),
            status=CourseStatus.ACTIVE,
            created_by=_SEEDED_BY,
            created_at=now,
        ),
        Course.new(
            title="Finance Department Training",
            description="Financial regulations and procedures for the finance team.",
            category=CourseCategory.TECHNICAL,
            duration_minutes=60,
            content=catalog_service.youtube_content(
                "https://www.youtube.com/watch?v=TE4UW7MXBGc"
            ),
            status=CourseStatus.ACTIVE,
            mandatory=True,
            deadline=now + 60 * _DAY,
            audience=Audience(everyone=False, departments=frozenset({"Finance"})),
            created_by=_SEEDED_BY,
            created_at=now,
        ),
    ]


def _demo_policies(now: int) -> list[Policy]:
    return [
        Policy.new(
            title="Code of Conduct",
            description="Company-wide code of conduct and ethical guidelines",
            category="Ethics",
            content="Expected behavior and ethical standards for all employees.",
            version="2.1",
            effective_date="2024-01-01",
            mandatory=True,
            created_by=_SEEDED_BY,
            created_at=now,
        ),
        Policy.new(
            title="Data Protection Policy",
            description="Guidelines for handling and protecting sensitive data",
            category="Security",
            content="Collection, use and protection of personal and sensitive data.",
            version="1.5",
            effective_date="2024-02-01",
            mandatory=True,
            created_by=_SEEDED_BY,
            created_at=now,
        ),
    ]


def _demo_announcements(now: int) -> list[Announcement]:
    return [
        Announcement.new(
            title="Quarterly Compliance Training Reminder",
            content=(
                "The quarterly compliance training is due by the end of this month. "
                "Please complete all assigned modules."
            ),
            category="Training",
            kind="reminder",
            priority="medium",
            expires_at=now + 30 * _DAY,
            author="Training Department",
            created_by=_SEEDED_BY,
            created_at=now,
        ),
    ]


async def seed_demo_data(repos: Repositories, *, now: int | None = None) -> int:
    """Insert the demo catalog unless courses already exist.

    Returns the number of courses, policies and announcements created.
    """
    if await repos.courses.list_all():
        logger.info("Demo data skipped: catalog is not empty")
        return 0

    now = now if now is not None else epoch_now()
    created = 0
    for course in _demo_courses(now):
        await catalog_service.create_course(repos.courses, course)
        created += 1
    for policy in _demo_policies(now):
        await policy_service.create_policy(repos.policies, policy)
        created += 1
    for announcement in _demo_announcements(now):
        await announcement_service.create_announcement(repos.announcements, announcement)
        created += 1
    logger.info("Demo data seeded items=%d", created)
    return created
