from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms.models.incident import IncidentReport
from lms.services.errors import AlreadyExists


class IncidentRepo(Protocol):
    async def get(self, incident_id: UUID) -> IncidentReport | None: ...
    async def list_all(self) -> list[IncidentReport]: ...
    async def list_by_reporter(self, user_id: str) -> list[IncidentReport]: ...
    async def add(self, incident: IncidentReport) -> None: ...
    async def update(self, incident: IncidentReport) -> IncidentReport | None: ...


class InMemoryIncidentRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, IncidentReport] = {}

    async def get(self, incident_id: UUID) -> IncidentReport | None:
        return self._by_id.get(incident_id)

    async def list_all(self) -> list[IncidentReport]:
        return list(self._by_id.values())

    async def list_by_reporter(self, user_id: str) -> list[IncidentReport]:
        return [i for i in self._by_id.values() if i.reported_by == user_id]

    async def add(self, incident: IncidentReport) -> None:
        if incident.id in self._by_id:
            raise AlreadyExists("incident report already exists")
        self._by_id[incident.id] = incident

    async def update(self, incident: IncidentReport) -> IncidentReport | None:
        if incident.id not in self._by_id:
            return None
        self._by_id[incident.id] = incident
        return incident
