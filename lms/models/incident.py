from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class IncidentReport:
    id: UUID
    title: str
    description: str
    category: str  # security|policy|operational|other
    severity: str = "medium"  # low|medium|high|critical
    status: str = "reported"  # reported|investigating|resolved|closed
    reported_by: str = ""
    reported_at: int = 0
    assigned_to: str | None = None
    resolution: str | None = None
    root_cause: str | None = None
    affected_systems: tuple[str, ...] = ()
    preventive_measures: tuple[str, ...] = ()
    resolved_at: int | None = None
    updated_at: int = 0

    @property
    def is_open(self) -> bool:
        return self.status in ("reported", "investigating")

    @staticmethod
    def new(
        *,
        title: str,
        description: str,
        category: str,
        reported_by: str,
        reported_at: int,
        severity: str = "medium",
        affected_systems: tuple[str, ...] = (),
    ) -> IncidentReport:
        return IncidentReport(
            id=uuid4(),
            title=title,
            description=description,
            category=category,
            severity=severity,
            reported_by=reported_by,
            reported_at=reported_at,
            affected_systems=affected_systems,
            updated_at=reported_at,
        )
