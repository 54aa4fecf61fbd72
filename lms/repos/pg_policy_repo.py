"""PostgreSQL implementations of PolicyRepo and AcknowledgmentRepo."""

from __future__ import annotations

from dataclasses import asdict
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import PolicyAcknowledgmentRow, PolicyRow
from lms.models.policy import Policy, PolicyAcknowledgment
from lms.services.errors import AlreadyExists


class PgPolicyRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, policy_id: UUID) -> Policy | None:
        row = (
            await self._session.execute(select(PolicyRow).where(PolicyRow.id == policy_id))
        ).scalar_one_or_none()
        return None if row is None else _row_to_policy(row)

    async def list_all(self) -> list[Policy]:
        rows = (await self._session.execute(select(PolicyRow))).scalars().all()
        return [_row_to_policy(r) for r in rows]

    async def add(self, policy: Policy) -> None:
        try:
            async with self._session.begin_nested():
                self._session.add(PolicyRow(**asdict(policy)))
        except IntegrityError:
            raise AlreadyExists("policy already exists") from None

    async def update(self, policy: Policy) -> Policy | None:
        values = asdict(policy)
        values.pop("id")
        result = await self._session.execute(
            update(PolicyRow).where(PolicyRow.id == policy.id).values(**values)
        )
        if result.rowcount == 0:
            return None
        return policy


class PgAcknowledgmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str, policy_id: UUID) -> PolicyAcknowledgment | None:
        stmt = select(PolicyAcknowledgmentRow).where(
            PolicyAcknowledgmentRow.user_id == user_id,
            PolicyAcknowledgmentRow.policy_id == policy_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_ack(row)

    async def add(self, ack: PolicyAcknowledgment) -> None:
        try:
            async with self._session.begin_nested():
                self._session.add(PolicyAcknowledgmentRow(**asdict(ack)))
        except IntegrityError:
            raise AlreadyExists("policy already acknowledged") from None

    async def list_by_policy(self, policy_id: UUID) -> list[PolicyAcknowledgment]:
        stmt = select(PolicyAcknowledgmentRow).where(
            PolicyAcknowledgmentRow.policy_id == policy_id
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_ack(r) for r in rows]

    async def list_by_user(self, user_id: str) -> list[PolicyAcknowledgment]:
        stmt = select(PolicyAcknowledgmentRow).where(
            PolicyAcknowledgmentRow.user_id == user_id
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_ack(r) for r in rows]


def _row_to_policy(row: PolicyRow) -> Policy:
    return Policy(
        id=row.id,
        title=row.title,
        description=row.description,
        category=row.category,
        content=row.content,
        version=row.version,
        effective_date=row.effective_date,
        expiry_date=row.expiry_date,
        status=row.status,
        mandatory=row.mandatory,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_ack(row: PolicyAcknowledgmentRow) -> PolicyAcknowledgment:
    return PolicyAcknowledgment(
        user_id=row.user_id,
        policy_id=row.policy_id,
        policy_version=row.policy_version,
        acknowledged_at=row.acknowledged_at,
    )
