"""Certificate listing, public verification, download and invalidation.

- GET  /v1/certificates/me                       the caller's valid certificates
- GET  /v1/certificates/{certificate_id}/verify  public, no token required
- GET  /v1/certificates/{certificate_id}/download  HTML, owner or compliance
- POST /v1/certificates/{certificate_id}/invalidate  compliance only
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from lms.api.dependencies import Cache, ComplianceUser, CurrentUser, Repos
from lms.api.errors import to_http_exception
from lms.core.clock import epoch_now
from lms.models.certificate import Certificate
from lms.services import certificate_service, report_service
from lms.services.errors import LmsError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


class CertificateOut(BaseModel):
    certificate_id: str
    user_id: str
    course_id: str
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
    valid_until: int | None
    is_valid: bool
    download_count: int
    last_downloaded_at: int | None
    invalidation_reason: str | None
    invalidated_at: int | None


class CertificateVerifyOut(BaseModel):
    certificate_id: str
    valid: bool
    user_name: str
    course_title: str
    completion_date: int
    score: int
    issued_by: str
    issued_at: int
    valid_until: int | None
    invalidation_reason: str | None


class InvalidateIn(BaseModel):
    reason: str


def _certificate_out(c: Certificate) -> CertificateOut:
    return CertificateOut(
        certificate_id=c.certificate_id,
        user_id=c.user_id,
        course_id=str(c.course_id),
        user_name=c.user_name,
        course_title=c.course_title,
        completion_date=c.completion_date,
        score=c.score,
        passing_score=c.passing_score,
        duration_minutes=c.duration_minutes,
        category=c.category,
        content_type=c.content_type,
        quiz_attempts=c.quiz_attempts,
        issued_by=c.issued_by,
        issued_at=c.issued_at,
        valid_until=c.valid_until,
        is_valid=c.is_valid,
        download_count=c.download_count,
        last_downloaded_at=c.last_downloaded_at,
        invalidation_reason=c.invalidation_reason,
        invalidated_at=c.invalidated_at,
    )


@router.get("/me", response_model=list[CertificateOut])
async def my_certificates(principal: CurrentUser, repos: Repos) -> list[CertificateOut]:
    certs = await certificate_service.list_valid_certificates(
        repos.certificates, principal.user_id
    )
    return [_certificate_out(c) for c in certs]


@router.get("/{certificate_id}/verify", response_model=CertificateVerifyOut)
async def verify_certificate(certificate_id: str, repos: Repos) -> CertificateVerifyOut:
    try:
        c = await certificate_service.get_certificate(repos.certificates, certificate_id)
    except LmsError as e:
        logger.warning("Verification of unknown certificate=%s", certificate_id)
        raise to_http_exception(e) from None
    now = epoch_now()
    return CertificateVerifyOut(
        certificate_id=c.certificate_id,
        valid=c.is_currently_valid(now),
        user_name=c.user_name,
        course_title=c.course_title,
        completion_date=c.completion_date,
        score=c.score,
        issued_by=c.issued_by,
        issued_at=c.issued_at,
        valid_until=c.valid_until,
        invalidation_reason=c.invalidation_reason,
    )


@router.get("/{certificate_id}/download", response_class=HTMLResponse)
async def download_certificate(
    certificate_id: str, principal: CurrentUser, repos: Repos
) -> HTMLResponse:
    try:
        certificate = await certificate_service.record_download(
            repos.certificates, principal, certificate_id
        )
    except LmsError as e:
        logger.warning(
            "Certificate download rejected user=%s certificate=%s: %s",
            principal.user_id,
            certificate_id,
            e,
        )
        raise to_http_exception(e) from None
    return HTMLResponse(
        content=certificate_service.render_certificate_html(certificate),
        headers={
            "Content-Disposition": f'inline; filename="{certificate.certificate_id}.html"'
        },
    )


@router.post("/{certificate_id}/invalidate", response_model=CertificateOut)
async def invalidate_certificate(
    certificate_id: str,
    body: InvalidateIn,
    principal: ComplianceUser,
    repos: Repos,
    cache: Cache,
) -> CertificateOut:
    try:
        certificate = await certificate_service.invalidate_certificate(
            repos.certificates,
            certificate_id,
            body.reason,
            invalidated_by=principal.user_id,
        )
    except LmsError as e:
        logger.warning(
            "Certificate invalidation rejected user=%s certificate=%s: %s",
            principal.user_id,
            certificate_id,
            e,
        )
        raise to_http_exception(e) from None
    await report_service.invalidate_course_stats(cache, certificate.course_id)
    return _certificate_out(certificate)
