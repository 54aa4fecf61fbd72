from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Policy:
    id: UUID
    title: str
    description: str
    category: str
    content: str
    version: str = "1.0"
    effective_date: str | None = None  # ISO date
    expiry_date: str | None = None
    status: str = "active"  # active|archived
    mandatory: bool = False
    created_by: str | None = None
    created_at: int = 0
    updated_at: int = 0

    @staticmethod
    def new(
        *,
        title: str,
        description: str,
        category: str,
        content: str,
        created_at: int,
        version: str = "1.0",
        effective_date: str | None = None,
        expiry_date: str | None = None,
        mandatory: bool = False,
        created_by: str | None = None,
    ) -> Policy:
        return Policy(
            id=uuid4(),
            title=title,
            description=description,
            category=category,
            content=content,
            version=version,
            effective_date=effective_date,
            expiry_date=expiry_date,
            mandatory=mandatory,
            created_by=created_by,
            created_at=created_at,
            updated_at=created_at,
        )


@dataclass(frozen=True, slots=True)
class PolicyAcknowledgment:
    user_id: str
    policy_id: UUID
    policy_version: str
    acknowledged_at: int
