"""Compliance incident reports.

Any employee can file a report and follow their own reports.  The
compliance team sees all of them and moves them through investigation
to resolution.  Closed reports are final.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any
from uuid import UUID

from lms.core.clock import epoch_now
from lms.core.metrics import INCIDENTS_REPORTED
from lms.models.incident import IncidentReport
from lms.models.principal import Principal
from lms.repos.incident_repo import IncidentRepo
from lms.services.errors import (
    AccessDenied,
    NotFoundError,
    PreconditionFailed,
    ValidationError,
)

logger = logging.getLogger(__name__)

CATEGORIES = ("security", "policy", "operational", "other")
SEVERITIES = ("low", "medium", "high", "critical")
STATUSES = ("reported", "investigating", "resolved", "closed")
UPDATABLE_FIELDS = frozenset(
    {
        "status",
        "severity",
        "assigned_to",
        "resolution",
        "root_cause",
        "preventive_measures",
    }
)


def validate_incident(incident: IncidentReport) -> None:
    for field in ("title", "description"):
        if not getattr(incident, field).strip():
            raise ValidationError(f"{field} is required", field=field)
    if len(incident.title) > 200:
        raise ValidationError("title cannot exceed 200 characters", field="title")
    if incident.category not in CATEGORIES:
        raise ValidationError(
            f"category must be one of {', '.join(CATEGORIES)}", field="category"
        )
    if incident.severity not in SEVERITIES:
        raise ValidationError(
            f"severity must be one of {', '.join(SEVERITIES)}", field="severity"
        )
    if incident.status not in STATUSES:
        raise ValidationError(
            f"status must be one of {', '.join(STATUSES)}", field="status"
        )
    closing = incident.status in ("resolved", "closed")
    if closing and not (incident.resolution or "").strip():
        raise ValidationError(
            "a resolution is required to resolve or close an incident",
            field="resolution",
        )


async def report_incident(repo: IncidentRepo, incident: IncidentReport) -> IncidentReport:
    validate_incident(incident)
    await repo.add(incident)
    INCIDENTS_REPORTED.labels(severity=incident.severity).inc()
    logger.info(
        "Incident reported id=%s category=%s severity=%s by=%s",
        incident.id,
        incident.category,
        incident.severity,
        incident.reported_by,
    )
    return incident


async def list_incidents(
    repo: IncidentRepo,
    principal: Principal,
    *,
    category: str | None = None,
    severity: str | None = None,
    status: str | None = None,
) -> list[IncidentReport]:
    """All reports for compliance users, own reports for everyone else.

    Newest first.
    """
    if principal.is_compliance():
        incidents = await repo.list_all()
    else:
        incidents = await repo.list_by_reporter(principal.user_id)
    if category:
        incidents = [i for i in incidents if i.category == category]
    if severity:
        incidents = [i for i in incidents if i.severity == severity]
    if status:
        incidents = [i for i in incidents if i.status == status]
    return sorted(incidents, key=lambda i: i.reported_at, reverse=True)


async def get_incident(
    repo: IncidentRepo, principal: Principal, incident_id: UUID
) -> IncidentReport:
    incident = await repo.get(incident_id)
    if incident is None:
        raise NotFoundError("Incident report not found")
    if not principal.is_compliance() and incident.reported_by != principal.user_id:
        raise AccessDenied("not your incident report")
    return incident


async def update_incident(
    repo: IncidentRepo,
    principal: Principal,
    incident_id: UUID,
    changes: dict[str, Any],
    *,
    now: int | None = None,
) -> IncidentReport:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")
    current = await get_incident(repo, principal, incident_id)
    if current.status == "closed":
        raise PreconditionFailed("incident report is closed")

    now = now if now is not None else epoch_now()
    updated = replace(current, **changes, updated_at=now)
    if updated.status in ("resolved", "closed") and updated.resolved_at is None:
        updated = replace(updated, resolved_at=now)
    validate_incident(updated)

    stored = await repo.update(updated)
    if stored is None:
        raise NotFoundError("Incident report not found")
    logger.info(
        "Incident updated id=%s status=%s->%s by=%s",
        incident_id,
        current.status,
        stored.status,
        principal.user_id,
    )
    return stored
