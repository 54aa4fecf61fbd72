"""Incident report endpoints.

Employees file reports and see their own; compliance and admin users see
and update every report.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from lms.api.dependencies import ComplianceUser, CurrentUser, Repos
from lms.api.errors import to_http_exception
from lms.core.clock import epoch_now
from lms.models.incident import IncidentReport
from lms.services import incident_service
from lms.services.errors import LmsError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/incidents", tags=["incidents"])

Category = Literal["security", "policy", "operational", "other"]
Severity = Literal["low", "medium", "high", "critical"]
IncidentStatus = Literal["reported", "investigating", "resolved", "closed"]


class IncidentCreateIn(BaseModel):
    title: str
    description: str
    category: Category
    severity: Severity = "medium"
    affected_systems: list[str] = Field(default_factory=list)


class IncidentUpdateIn(BaseModel):
    status: IncidentStatus | None = None
    severity: Severity | None = None
    assigned_to: str | None = None
    resolution: str | None = None
    root_cause: str | None = None
    preventive_measures: list[str] | None = None


class IncidentOut(BaseModel):
    id: str
    title: str
    description: str
    category: str
    severity: str
    status: str
    reported_by: str
    reported_at: int
    assigned_to: str | None
    resolution: str | None
    root_cause: str | None
    affected_systems: list[str]
    preventive_measures: list[str]
    resolved_at: int | None
    updated_at: int


def _incident_out(i: IncidentReport) -> IncidentOut:
    return IncidentOut(
        id=str(i.id),
        title=i.title,
        description=i.description,
        category=i.category,
        severity=i.severity,
        status=i.status,
        reported_by=i.reported_by,
        reported_at=i.reported_at,
        assigned_to=i.assigned_to,
        resolution=i.resolution,
        root_cause=i.root_cause,
        affected_systems=list(i.affected_systems),
        preventive_measures=list(i.preventive_measures),
        resolved_at=i.resolved_at,
        updated_at=i.updated_at,
    )


_NULLABLE_FIELDS = {"assigned_to", "root_cause"}


def _changes_from_update(body: IncidentUpdateIn) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for name in body.model_dump(exclude_unset=True):
        value = getattr(body, name)
        if value is None and name not in _NULLABLE_FIELDS:
            raise ValidationError(f"{name} cannot be null", field=name)
        if name == "preventive_measures":
            value = tuple(m.strip() for m in value if m.strip())
        changes[name] = value
    return changes


@router.get("", response_model=list[IncidentOut])
async def list_incidents(
    principal: CurrentUser,
    repos: Repos,
    category: str | None = None,
    severity: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[IncidentOut]:
    incidents = await incident_service.list_incidents(
        repos.incidents,
        principal,
        category=category,
        severity=severity,
        status=status_filter,
    )
    return [_incident_out(i) for i in incidents]


@router.get("/{incident_id}", response_model=IncidentOut)
async def get_incident(
    incident_id: UUID, principal: CurrentUser, repos: Repos
) -> IncidentOut:
    try:
        incident = await incident_service.get_incident(
            repos.incidents, principal, incident_id
        )
    except LmsError as e:
        logger.warning(
            "Incident view rejected user=%s incident=%s: %s",
            principal.user_id,
            incident_id,
            e,
        )
        raise to_http_exception(e) from None
    return _incident_out(incident)


@router.post("", response_model=IncidentOut, status_code=status.HTTP_201_CREATED)
async def report_incident(
    body: IncidentCreateIn, principal: CurrentUser, repos: Repos
) -> IncidentOut:
    incident = IncidentReport.new(
        title=body.title.strip(),
        description=body.description.strip(),
        category=body.category,
        severity=body.severity,
        reported_by=principal.user_id,
        reported_at=epoch_now(),
        affected_systems=tuple(s.strip() for s in body.affected_systems if s.strip()),
    )
    try:
        incident = await incident_service.report_incident(repos.incidents, incident)
    except LmsError as e:
        logger.warning("Incident report rejected user=%s: %s", principal.user_id, e)
        raise to_http_exception(e) from None
    return _incident_out(incident)


@router.put("/{incident_id}", response_model=IncidentOut)
async def update_incident(
    incident_id: UUID, body: IncidentUpdateIn, principal: ComplianceUser, repos: Repos
) -> IncidentOut:
    try:
        incident = await incident_service.update_incident(
            repos.incidents, principal, incident_id, _changes_from_update(body)
        )
    except LmsError as e:
        logger.warning(
            "Incident update rejected user=%s incident=%s: %s",
            principal.user_id,
            incident_id,
            e,
        )
        raise to_http_exception(e) from None
    return _incident_out(incident)
