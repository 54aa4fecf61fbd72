"""Bundles the repositories a request needs.

Services take individual repos as arguments; the API layer receives a
``Repositories`` from ``get_repos`` and hands out the pieces.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from lms.repos.announcement_repo import (
    AnnouncementReadRepo,
    AnnouncementRepo,
    InMemoryAnnouncementReadRepo,
    InMemoryAnnouncementRepo,
)
from lms.repos.certificate_repo import CertificateRepo, InMemoryCertificateRepo
from lms.repos.course_repo import CourseRepo, InMemoryCourseRepo
from lms.repos.incident_repo import IncidentRepo, InMemoryIncidentRepo
from lms.repos.pg_announcement_repo import PgAnnouncementReadRepo, PgAnnouncementRepo
from lms.repos.pg_certificate_repo import PgCertificateRepo
from lms.repos.pg_course_repo import PgCourseRepo
from lms.repos.pg_incident_repo import PgIncidentRepo
from lms.repos.pg_policy_repo import PgAcknowledgmentRepo, PgPolicyRepo
from lms.repos.pg_progress_repo import PgProgressRepo
from lms.repos.policy_repo import (
    AcknowledgmentRepo,
    InMemoryAcknowledgmentRepo,
    InMemoryPolicyRepo,
    PolicyRepo,
)
from lms.repos.progress_repo import InMemoryProgressRepo, ProgressRepo


@dataclass(slots=True)
class Repositories:
    courses: CourseRepo
    progress: ProgressRepo
    certificates: CertificateRepo
    policies: PolicyRepo
    acknowledgments: AcknowledgmentRepo
    announcements: AnnouncementRepo
    announcement_reads: AnnouncementReadRepo
    incidents: IncidentRepo

    @staticmethod
    def in_memory() -> Repositories:
        return Repositories(
            courses=InMemoryCourseRepo(),
            progress=InMemoryProgressRepo(),
            certificates=InMemoryCertificateRepo(),
            policies=InMemoryPolicyRepo(),
            acknowledgments=InMemoryAcknowledgmentRepo(),
            announcements=InMemoryAnnouncementRepo(),
            announcement_reads=InMemoryAnnouncementReadRepo(),
            incidents=InMemoryIncidentRepo(),
        )

    @staticmethod
    def postgres(session: AsyncSession) -> Repositories:
        return Repositories(
            courses=PgCourseRepo(session),
            progress=PgProgressRepo(session),
            certificates=PgCertificateRepo(session),
            policies=PgPolicyRepo(session),
            acknowledgments=PgAcknowledgmentRepo(session),
            announcements=PgAnnouncementRepo(session),
            announcement_reads=PgAnnouncementReadRepo(session),
            incidents=PgIncidentRepo(session),
        )
