"""Course completion statistics, served through the read-through cache."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from uuid import UUID

from lms.core.clock import epoch_now
from lms.core.metrics import CACHE_OPERATIONS
from lms.models.progress import ProgressStatus
from lms.repos.certificate_repo import CertificateRepo
from lms.repos.progress_repo import ProgressRepo
from lms.services.cache import CacheService

logger = logging.getLogger(__name__)

STATS_CACHE_TTL = 300


def stats_cache_key(course_id: UUID) -> str:
    return f"stats:{course_id}"


@dataclass(frozen=True, slots=True)
class StatusBreakdown:
    count: int
    average_score: float


@dataclass(frozen=True, slots=True)
class CourseStats:
    course_id: str
    total_learners: int
    completed_learners: int
    completion_rate: float
    certificates_issued: int
    valid_certificates: int
    by_status: dict[str, StatusBreakdown] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @staticmethod
    def from_json(raw: str) -> CourseStats:
        data = json.loads(raw)
        data["by_status"] = {
            k: StatusBreakdown(**v) for k, v in data["by_status"].items()
        }
        return CourseStats(**data)


async def compute_course_stats(
    progress: ProgressRepo,
    certificates: CertificateRepo,
    course_id: UUID,
    *,
    now: int | None = None,
) -> CourseStats:
    now = now if now is not None else epoch_now()
    records = await progress.list_by_course(course_id)
    certs = await certificates.list_by_course(course_id)

    by_status: dict[str, StatusBreakdown] = {}
    for status in ProgressStatus:
        scores = [r.best_score for r in records if r.status == status]
        if scores:
            by_status[status.value] = StatusBreakdown(
                count=len(scores),
                average_score=round(sum(scores) / len(scores), 2),
            )

    total = len(records)
    completed = by_status.get(ProgressStatus.COMPLETED.value)
    completed_count = completed.count if completed else 0
    return CourseStats(
        course_id=str(course_id),
        total_learners=total,
        completed_learners=completed_count,
        completion_rate=round(completed_count / total * 100, 2) if total else 0.0,
        certificates_issued=len(certs),
        valid_certificates=sum(1 for c in certs if c.is_currently_valid(now)),
        by_status=by_status,
    )


async def course_stats(
    cache: CacheService,
    progress: ProgressRepo,
    certificates: CertificateRepo,
    course_id: UUID,
) -> CourseStats:
    """Read-through: cache hit returns immediately, miss computes and stores."""
    key = stats_cache_key(course_id)
    cached = await cache.get(key)
    if cached is not None:
        CACHE_OPERATIONS.labels(operation="hit").inc()
        return CourseStats.from_json(cached)

    CACHE_OPERATIONS.labels(operation="miss").inc()
    stats = await compute_course_stats(progress, certificates, course_id)
    await cache.set(key, stats.to_json(), STATS_CACHE_TTL)
    return stats


async def invalidate_course_stats(cache: CacheService, course_id: UUID) -> None:
    await cache.delete(stats_cache_key(course_id))
    logger.debug("Stats cache invalidated course=%s", course_id)
