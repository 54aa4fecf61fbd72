"""Policy distribution and acknowledgment endpoints."""

from __future__ import annotations

import logging
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import BaseModel

from lms.api.dependencies import ComplianceUser, CurrentUser, Repos
from lms.api.errors import to_http_exception
from lms.core.clock import epoch_now
from lms.models.policy import Policy, PolicyAcknowledgment
from lms.services import policy_service
from lms.services.errors import LmsError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/policies", tags=["policies"])


class PolicyCreateIn(BaseModel):
    title: str
    description: str
    category: str
    content: str
    version: str = "1.0"
    effective_date: str | None = None
    expiry_date: str | None = None
    mandatory: bool = False


class PolicyUpdateIn(BaseModel):
    title: str | None = None
    description: str | None = None
    category: str | None = None
    content: str | None = None
    version: str | None = None
    effective_date: str | None = None
    expiry_date: str | None = None
    status: Literal["active", "archived"] | None = None
    mandatory: bool | None = None


class PolicyOut(BaseModel):
    id: str
    title: str
    description: str
    category: str
    content: str
    version: str
    effective_date: str | None
    expiry_date: str | None
    status: str
    mandatory: bool
    created_by: str | None
    created_at: int
    updated_at: int
    acknowledged_by_me: bool


class AcknowledgmentOut(BaseModel):
    user_id: str
    policy_id: str
    policy_version: str
    acknowledged_at: int


def _policy_out(policy: Policy, acknowledged: bool) -> PolicyOut:
    return PolicyOut(
        id=str(policy.id),
        title=policy.title,
        description=policy.description,
        category=policy.category,
        content=policy.content,
        version=policy.version,
        effective_date=policy.effective_date,
        expiry_date=policy.expiry_date,
        status=policy.status,
        mandatory=policy.mandatory,
        created_by=policy.created_by,
        created_at=policy.created_at,
        updated_at=policy.updated_at,
        acknowledged_by_me=acknowledged,
    )


def _ack_out(ack: PolicyAcknowledgment) -> AcknowledgmentOut:
    return AcknowledgmentOut(
        user_id=ack.user_id,
        policy_id=str(ack.policy_id),
        policy_version=ack.policy_version,
        acknowledged_at=ack.acknowledged_at,
    )


_NULLABLE_FIELDS = {"effective_date", "expiry_date"}


@router.get("", response_model=list[PolicyOut])
async def list_policies(
    principal: CurrentUser,
    repos: Repos,
    category: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    mandatory: bool | None = None,
) -> list[PolicyOut]:
    policies = await policy_service.list_policies(
        repos.policies, category=category, status=status_filter, mandatory=mandatory
    )
    acked = await policy_service.acknowledged_policy_ids(
        repos.acknowledgments, principal.user_id
    )
    return [_policy_out(p, p.id in acked) for p in policies]


@router.get("/{policy_id}", response_model=PolicyOut)
async def get_policy(policy_id: UUID, principal: CurrentUser, repos: Repos) -> PolicyOut:
    try:
        policy = await policy_service.get_policy(repos.policies, policy_id)
    except LmsError as e:
        raise to_http_exception(e) from None
    ack = await repos.acknowledgments.get(principal.user_id, policy_id)
    return _policy_out(policy, ack is not None)


@router.post("", response_model=PolicyOut, status_code=status.HTTP_201_CREATED)
async def create_policy(
    body: PolicyCreateIn, principal: ComplianceUser, repos: Repos
) -> PolicyOut:
    policy = Policy.new(
        title=body.title.strip(),
        description=body.description.strip(),
        category=body.category.strip(),
        content=body.content,
        created_at=epoch_now(),
        version=body.version.strip(),
        effective_date=body.effective_date,
        expiry_date=body.expiry_date,
        mandatory=body.mandatory,
        created_by=principal.user_id,
    )
    try:
        policy = await policy_service.create_policy(repos.policies, policy)
    except LmsError as e:
        logger.warning("Policy create rejected user=%s: %s", principal.user_id, e)
        raise to_http_exception(e) from None
    return _policy_out(policy, False)


@router.put("/{policy_id}", response_model=PolicyOut)
async def update_policy(
    policy_id: UUID, body: PolicyUpdateIn, principal: ComplianceUser, repos: Repos
) -> PolicyOut:
    try:
        changes = body.model_dump(exclude_unset=True)
        for name, value in changes.items():
            if value is None and name not in _NULLABLE_FIELDS:
                raise ValidationError(f"{name} cannot be null", field=name)
        policy = await policy_service.update_policy(repos.policies, policy_id, changes)
    except LmsError as e:
        logger.warning(
            "Policy update rejected user=%s policy=%s: %s", principal.user_id, policy_id, e
        )
        raise to_http_exception(e) from None
    ack = await repos.acknowledgments.get(principal.user_id, policy_id)
    return _policy_out(policy, ack is not None)


@router.post(
    "/{policy_id}/acknowledge",
    response_model=AcknowledgmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def acknowledge_policy(
    policy_id: UUID, principal: CurrentUser, repos: Repos
) -> AcknowledgmentOut:
    try:
        ack = await policy_service.acknowledge_policy(
            repos.policies, repos.acknowledgments, principal.user_id, policy_id
        )
    except LmsError as e:
        logger.warning(
            "Acknowledgment rejected user=%s policy=%s: %s", principal.user_id, policy_id, e
        )
        raise to_http_exception(e) from None
    return _ack_out(ack)


@router.get("/{policy_id}/acknowledgments", response_model=list[AcknowledgmentOut])
async def list_acknowledgments(
    policy_id: UUID, _principal: ComplianceUser, repos: Repos
) -> list[AcknowledgmentOut]:
    try:
        acks = await policy_service.list_acknowledgments(
            repos.policies, repos.acknowledgments, policy_id
        )
    except LmsError as e:
        raise to_http_exception(e) from None
    return [_ack_out(a) for a in acks]
