"""Course statistics and the read-through stats cache."""

from __future__ import annotations

import asyncio
from uuid import uuid4

from prometheus_client import REGISTRY

from lms.models.certificate import Certificate
from lms.models.progress import ProgressRecord, ProgressStatus
from lms.repos.certificate_repo import InMemoryCertificateRepo
from lms.repos.progress_repo import InMemoryProgressRepo
from lms.services import report_service
from lms.services.cache import InMemoryCacheService

NOW = 1_700_000_000


def _hits(operation: str) -> float:
    value = REGISTRY.get_sample_value(
        "cache_operations_total", {"operation": operation}
    )
    return value or 0.0


def _certificate(user_id: str, course_id, *, valid: bool = True) -> Certificate:
    cert = Certificate.new(
        certificate_id=f"CERT-{user_id.upper()}",
        user_id=user_id,
        course_id=course_id,
        user_name=user_id,
        course_title="Course",
        completion_date=NOW,
        score=100,
        passing_score=70,
        duration_minutes=10,
        category="Compliance",
        content_type="interactive",
        quiz_attempts=1,
        issued_by="test",
        issued_at=NOW,
    )
    return cert if valid else cert.invalidate("revoked", NOW)


def _seed(course_id) -> tuple[InMemoryProgressRepo, InMemoryCertificateRepo]:
    progress, certs = InMemoryProgressRepo(), InMemoryCertificateRepo()
    rows = [
        ("a", ProgressStatus.COMPLETED, 100),
        ("b", ProgressStatus.COMPLETED, 80),
        ("c", ProgressStatus.IN_PROGRESS, 40),
        ("d", ProgressStatus.FAILED, 30),
    ]
    for user_id, status, score in rows:
        record = ProgressRecord(
            user_id=user_id, course_id=course_id, status=status, best_score=score
        )
        asyncio.run(progress.add(record))
    asyncio.run(certs.add(_certificate("a", course_id)))
    asyncio.run(certs.add(_certificate("b", course_id, valid=False)))
    return progress, certs


def test_compute_course_stats() -> None:
    course_id = uuid4()
    progress, certs = _seed(course_id)
    stats = asyncio.run(
        report_service.compute_course_stats(progress, certs, course_id, now=NOW)
    )
    assert stats.total_learners == 4
    assert stats.completed_learners == 2
    assert stats.completion_rate == 50.0
    assert stats.certificates_issued == 2
    assert stats.valid_certificates == 1
    assert stats.by_status["completed"].count == 2
    assert stats.by_status["completed"].average_score == 90.0
    assert "not_started" not in stats.by_status


def test_stats_for_course_without_learners() -> None:
    stats = asyncio.run(
        report_service.compute_course_stats(
            InMemoryProgressRepo(), InMemoryCertificateRepo(), uuid4()
        )
    )
    assert stats.total_learners == 0
    assert stats.completion_rate == 0.0
    assert stats.by_status == {}


def test_stats_json_round_trip() -> None:
    course_id = uuid4()
    progress, certs = _seed(course_id)
    stats = asyncio.run(report_service.compute_course_stats(progress, certs, course_id))
    assert report_service.CourseStats.from_json(stats.to_json()) == stats


def test_course_stats_miss_then_hit() -> None:
    cache = InMemoryCacheService()
    course_id = uuid4()
    progress, certs = _seed(course_id)

    misses, hits = _hits("miss"), _hits("hit")
    first = asyncio.run(report_service.course_stats(cache, progress, certs, course_id))
    assert _hits("miss") - misses == 1
    assert report_service.stats_cache_key(course_id) in cache._store

    # A new learner is invisible until the entry is invalidated.
    asyncio.run(progress.add(ProgressRecord(user_id="e", course_id=course_id)))
    second = asyncio.run(report_service.course_stats(cache, progress, certs, course_id))
    assert _hits("hit") - hits == 1
    assert second == first

    asyncio.run(report_service.invalidate_course_stats(cache, course_id))
    third = asyncio.run(report_service.course_stats(cache, progress, certs, course_id))
    assert third.total_learners == 5
