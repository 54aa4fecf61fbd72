"""Policy distribution and acknowledgment."""

from __future__ import annotations

import datetime
import logging
from dataclasses import replace
from typing import Any
from uuid import UUID

from lms.core.clock import epoch_now
from lms.core.metrics import POLICY_ACKNOWLEDGMENTS
from lms.models.policy import Policy, PolicyAcknowledgment
from lms.repos.policy_repo import AcknowledgmentRepo, PolicyRepo
from lms.services.errors import (
    AlreadyExists,
    NotFoundError,
    PreconditionFailed,
    ValidationError,
)

logger = logging.getLogger(__name__)

POLICY_STATUSES = ("active", "archived")
UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "category",
        "content",
        "version",
        "effective_date",
        "expiry_date",
        "status",
        "mandatory",
    }
)


def _check_date(value: str | None, field: str) -> None:
    if value is None:
        return
    try:
        datetime.date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)", field=field) from None


def validate_policy(policy: Policy) -> None:
    for field in ("title", "description", "category", "content", "version"):
        if not getattr(policy, field).strip():
            raise ValidationError(f"{field} is required", field=field)
    if len(policy.title) > 200:
        raise ValidationError("title cannot exceed 200 characters", field="title")
    if len(policy.description) > 1000:
        raise ValidationError(
            "description cannot exceed 1000 characters", field="description"
        )
    if policy.status not in POLICY_STATUSES:
        raise ValidationError("status must be active or archived", field="status")
    _check_date(policy.effective_date, "effective_date")
    _check_date(policy.expiry_date, "expiry_date")
    if (
        policy.effective_date
        and policy.expiry_date
        and policy.expiry_date < policy.effective_date
    ):
        raise ValidationError(
            "expiry_date cannot be before effective_date", field="expiry_date"
        )


async def list_policies(
    repo: PolicyRepo,
    *,
    category: str | None = None,
    status: str | None = None,
    mandatory: bool | None = None,
) -> list[Policy]:
    policies = await repo.list_all()
    if category:
        policies = [p for p in policies if p.category.lower() == category.lower()]
    if status:
        policies = [p for p in policies if p.status == status]
    if mandatory is not None:
        policies = [p for p in policies if p.mandatory == mandatory]
    return sorted(policies, key=lambda p: p.created_at)


async def get_policy(repo: PolicyRepo, policy_id: UUID) -> Policy:
    policy = await repo.get(policy_id)
    if policy is None:
        raise NotFoundError("Policy not found")
    return policy


async def create_policy(repo: PolicyRepo, policy: Policy) -> Policy:
    validate_policy(policy)
    await repo.add(policy)
    logger.info(
        "Policy created id=%s title=%r version=%s by=%s",
        policy.id,
        policy.title,
        policy.version,
        policy.created_by,
    )
    return policy


async def update_policy(
    repo: PolicyRepo,
    policy_id: UUID,
    changes: dict[str, Any],
    *,
    now: int | None = None,
) -> Policy:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")
    current = await get_policy(repo, policy_id)
    updated = replace(
        current, **changes, updated_at=now if now is not None else epoch_now()
    )
    validate_policy(updated)
    stored = await repo.update(updated)
    if stored is None:
        raise NotFoundError("Policy not found")
    logger.info("Policy updated id=%s fields=%s", policy_id, ",".join(sorted(changes)))
    return stored


async def acknowledge_policy(
    policies: PolicyRepo,
    acks: AcknowledgmentRepo,
    user_id: str,
    policy_id: UUID,
    *,
    now: int | None = None,
) -> PolicyAcknowledgment:
    policy = await get_policy(policies, policy_id)
    if policy.status != "active":
        raise PreconditionFailed(f"policy is {policy.status}")
    if await acks.get(user_id, policy_id) is not None:
        raise AlreadyExists("Policy already acknowledged")

    ack = PolicyAcknowledgment(
        user_id=user_id,
        policy_id=policy_id,
        policy_version=policy.version,
        acknowledged_at=now if now is not None else epoch_now(),
    )
    await acks.add(ack)
    POLICY_ACKNOWLEDGMENTS.inc()
    logger.info(
        "Policy acknowledged user=%s policy=%s version=%s",
        user_id,
        policy_id,
        policy.version,
    )
    return ack


async def list_acknowledgments(
    policies: PolicyRepo, acks: AcknowledgmentRepo, policy_id: UUID
) -> list[PolicyAcknowledgment]:
    await get_policy(policies, policy_id)
    return sorted(await acks.list_by_policy(policy_id), key=lambda a: a.acknowledged_at)


async def acknowledged_policy_ids(acks: AcknowledgmentRepo, user_id: str) -> set[UUID]:
    return {a.policy_id for a in await acks.list_by_user(user_id)}
