"""Certificate issuance, verification and rendering.

A certificate is a snapshot taken from a completed progress record.
Issuance is idempotent per (user, course): the first request creates it,
every later request returns the same certificate.
"""

from __future__ import annotations

import datetime
import html
import logging
import secrets
import string

from lms.core.clock import epoch_now
from lms.core.metrics import CERTIFICATES_ISSUED
from lms.models.certificate import Certificate
from lms.models.course import Course
from lms.models.principal import Principal
from lms.repos.certificate_repo import CertificateRepo
from lms.repos.progress_repo import ProgressRepo
from lms.services.errors import (
    AccessDenied,
    AlreadyExists,
    NotFoundError,
    PreconditionFailed,
    ValidationError,
)

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase
_SECONDS_PER_DAY = 86_400


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_certificate_id(now_ms: int | None = None) -> str:
    """``CERT-<base36 millis>-<6 random base36 chars>``, upper case."""
    if now_ms is None:
        now_ms = int(datetime.datetime.now(datetime.UTC).timestamp() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"CERT-{_base36(now_ms)}-{suffix}"


async def issue_certificate(
    certificates: CertificateRepo,
    progress: ProgressRepo,
    principal: Principal,
    course: Course,
    *,
    issuer: str,
    validity_days: int = 0,
    now: int | None = None,
) -> tuple[Certificate, bool]:
    """Return the learner's certificate for this course, creating it once.

    The second element is True when this call created the certificate.
    """
    existing = await certificates.get_for(principal.user_id, course.id)
    if existing is not None:
        return existing, False

    record = await progress.get(principal.user_id, course.id)
    if record is None or not record.is_completed:
        logger.warning(
            "Certificate refused user=%s course=%s status=%s",
            principal.user_id,
            course.id,
            record.status if record else "none",
        )
        raise PreconditionFailed("Training not completed")

    now = now if now is not None else epoch_now()
    certificate = Certificate.new(
        certificate_id=generate_certificate_id(),
        user_id=principal.user_id,
        course_id=course.id,
        user_name=principal.name or principal.user_id,
        course_title=course.title,
        completion_date=record.completed_at or now,
        score=record.best_score,
        passing_score=course.quiz.passing_score if course.quiz else 0,
        duration_minutes=course.duration_minutes,
        category=course.category.value,
        content_type=course.content_type.value,
        quiz_attempts=record.attempt_count,
        issued_by=issuer,
        issued_at=now,
        valid_until=now + validity_days * _SECONDS_PER_DAY if validity_days else None,
    )
    try:
        await certificates.add(certificate)
    except AlreadyExists:
        # Lost a race with a concurrent request for the same certificate.
        winner = await certificates.get_for(principal.user_id, course.id)
        if winner is None:
            raise
        return winner, False

    CERTIFICATES_ISSUED.inc()
    logger.info(
        "Certificate issued id=%s user=%s course=%s score=%d",
        certificate.certificate_id,
        principal.user_id,
        course.id,
        certificate.score,
    )
    return certificate, True


async def get_certificate(repo: CertificateRepo, certificate_id: str) -> Certificate:
    certificate = await repo.get_by_certificate_id(certificate_id)
    if certificate is None:
        raise NotFoundError("Certificate not found")
    return certificate


async def list_valid_certificates(
    repo: CertificateRepo, user_id: str, *, now: int | None = None
) -> list[Certificate]:
    now = now if now is not None else epoch_now()
    certs = [c for c in await repo.list_by_user(user_id) if c.is_currently_valid(now)]
    return sorted(certs, key=lambda c: c.issued_at, reverse=True)


async def record_download(
    repo: CertificateRepo,
    principal: Principal,
    certificate_id: str,
    *,
    now: int | None = None,
) -> Certificate:
    """Count a download by the owner or a compliance user."""
    certificate = await get_certificate(repo, certificate_id)
    if certificate.user_id != principal.user_id and not principal.is_compliance():
        raise AccessDenied("not your certificate")
    now = now if now is not None else epoch_now()
    updated = await repo.update(certificate.record_download(now))
    if updated is None:
        raise NotFoundError("Certificate not found")
    return updated


async def invalidate_certificate(
    repo: CertificateRepo,
    certificate_id: str,
    reason: str,
    *,
    invalidated_by: str,
    now: int | None = None,
) -> Certificate:
    if not reason or not reason.strip():
        raise ValidationError("an invalidation reason is required", field="reason")
    certificate = await get_certificate(repo, certificate_id)
    if not certificate.is_valid:
        raise PreconditionFailed("certificate is already invalid")
    now = now if now is not None else epoch_now()
    updated = await repo.update(certificate.invalidate(reason.strip(), now))
    if updated is None:
        raise NotFoundError("Certificate not found")
    logger.info(
        "Certificate invalidated id=%s by=%s reason=%r",
        certificate_id,
        invalidated_by,
        updated.invalidation_reason,
    )
    return updated


def _fmt_date(ts: int) -> str:
    return datetime.datetime.fromtimestamp(ts, datetime.UTC).strftime("%B %d, %Y")


def render_certificate_html(certificate: Certificate) -> str:
    """Printable HTML certificate of completion.  Every value is escaped."""
    e = html.escape
    valid_until = (
        f"<p class=\"meta\">Valid until {_fmt_date(certificate.valid_until)}</p>"
        if certificate.valid_until is not None
        else ""
    )
    status = "" if certificate.is_valid else (
        f"<p class=\"void\">INVALIDATED: {e(certificate.invalidation_reason or '')}</p>"
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Certificate {e(certificate.certificate_id)}</title>
<style>
body {{ font-family: Georgia, serif; text-align: center; padding: 40px; }}
.frame {{ border: 8px double #1f3b5a; padding: 48px; }}
h1 {{ color: #1f3b5a; letter-spacing: 2px; }}
.name {{ font-size: 32px; font-weight: bold; margin: 24px 0; }}
.course {{ font-size: 24px; font-style: italic; }}
.meta {{ color: #555; }}
.void {{ color: #b00020; font-weight: bold; }}
</style>
</head>
<body>
<div class="frame">
<h1>Certificate of Completion</h1>
<p>This certifies that</p>
<p class="name">{e(certificate.user_name)}</p>
<p>has successfully completed</p>
<p class="course">{e(certificate.course_title)}</p>
<p class="meta">Category: {e(certificate.category)} &middot; Duration: {certificate.duration_minutes} minutes</p>
<p class="meta">Score: {certificate.score}% (passing score {certificate.passing_score}%)</p>
<p class="meta">Completed on {_fmt_date(certificate.completion_date)}</p>
{valid_until}
{status}
<p class="meta">Issued by {e(certificate.issued_by)}</p>
<p class="meta">Certificate ID: {e(certificate.certificate_id)}</p>
</div>
</body>
</html>
"""
