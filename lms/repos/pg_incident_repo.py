"""PostgreSQL implementation of IncidentRepo."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import IncidentReportRow
from lms.models.incident import IncidentReport
from lms.services.errors import AlreadyExists


class PgIncidentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, incident_id: UUID) -> IncidentReport | None:
        stmt = select(IncidentReportRow).where(IncidentReportRow.id == incident_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_incident(row)

    async def list_all(self) -> list[IncidentReport]:
        rows = (await self._session.execute(select(IncidentReportRow))).scalars().all()
        return [_row_to_incident(r) for r in rows]

    async def list_by_reporter(self, user_id: str) -> list[IncidentReport]:
        stmt = select(IncidentReportRow).where(IncidentReportRow.reported_by == user_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_incident(r) for r in rows]

    async def add(self, incident: IncidentReport) -> None:
        try:
            async with self._session.begin_nested():
                self._session.add(IncidentReportRow(**_incident_values(incident)))
        except IntegrityError:
            raise AlreadyExists("incident report already exists") from None

    async def update(self, incident: IncidentReport) -> IncidentReport | None:
        values = _incident_values(incident)
        values.pop("id")
        result = await self._session.execute(
            update(IncidentReportRow)
            .where(IncidentReportRow.id == incident.id)
            .values(**values)
        )
        if result.rowcount == 0:
            return None
        return incident


def _incident_values(incident: IncidentReport) -> dict[str, Any]:
    values = asdict(incident)
    values["affected_systems"] = list(incident.affected_systems)
    values["preventive_measures"] = list(incident.preventive_measures)
    return values


def _row_to_incident(row: IncidentReportRow) -> IncidentReport:
    return IncidentReport(
        id=row.id,
        title=row.title,
        description=row.description,
        category=row.category,
        severity=row.severity,
        status=row.status,
        reported_by=row.reported_by,
        reported_at=row.reported_at,
        assigned_to=row.assigned_to,
        resolution=row.resolution,
        root_cause=row.root_cause,
        affected_systems=tuple(row.affected_systems or ()),
        preventive_measures=tuple(row.preventive_measures or ()),
        resolved_at=row.resolved_at,
        updated_at=row.updated_at,
    )
