from __future__ import annotations

from dataclasses import dataclass, replace
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Certificate:
    """Issued certificate of completion.

    The course and learner fields are copied at issuance so the
    certificate stays meaningful after the course is edited or deleted.
    """

    id: UUID
    certificate_id: str  # human-readable, globally unique (CERT-...)
    user_id: str
    course_id: UUID
    user_name: str
    course_title: str
    completion_date: int
    score: int
    passing_score: int
    duration_minutes: int
    category: str
    content_type: str
    quiz_attempts: int
    issued_by: str
    issued_at: int
    valid_until: int | None = None
    is_valid: bool = True
    download_count: int = 0
    last_downloaded_at: int | None = None
    invalidation_reason: str | None = None
    invalidated_at: int | None = None

    def is_currently_valid(self, now: int) -> bool:
        if not self.is_valid:
            return False
        if self.valid_until is None:
            return True
        return now <= self.valid_until

    def record_download(self, now: int) -> Certificate:
        return replace(
            self, download_count=self.download_count + 1, last_downloaded_at=now
        )

    def invalidate(self, reason: str, now: int) -> Certificate:
        return replace(
            self, is_valid=False, invalidation_reason=reason, invalidated_at=now
        )

    @staticmethod
    def new(
        *,
        certificate_id: str,
        user_id: str,
        course_id: UUID,
        user_name: str,
        course_title: str,
        completion_date: int,
        score: int,
        passing_score: int,
        duration_minutes: int,
        category: str,
        content_type: str,
        quiz_attempts: int,
        issued_by: str,
        issued_at: int,
        valid_until: int | None = None,
    ) -> Certificate:
        return Certificate(
            id=uuid4(),
            certificate_id=certificate_id,
            user_id=user_id,
            course_id=course_id,
            user_name=user_name,
            course_title=course_title,
            completion_date=completion_date,
            score=score,
            passing_score=passing_score,
            duration_minutes=duration_minutes,
            category=category,
            content_type=content_type,
            quiz_attempts=quiz_attempts,
            issued_by=issued_by,
            issued_at=issued_at,
            valid_until=valid_until,
        )
