from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms.models.policy import Policy, PolicyAcknowledgment
from lms.services.errors import AlreadyExists


class PolicyRepo(Protocol):
    async def get(self, policy_id: UUID) -> Policy | None: ...
    async def list_all(self) -> list[Policy]: ...
    async def add(self, policy: Policy) -> None: ...
    async def update(self, policy: Policy) -> Policy | None: ...


class AcknowledgmentRepo(Protocol):
    async def get(self, user_id: str, policy_id: UUID) -> PolicyAcknowledgment | None: ...
    async def add(self, ack: PolicyAcknowledgment) -> None: ...
    async def list_by_policy(self, policy_id: UUID) -> list[PolicyAcknowledgment]: ...
    async def list_by_user(self, user_id: str) -> list[PolicyAcknowledgment]: ...


class InMemoryPolicyRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Policy] = {}

    async def get(self, policy_id: UUID) -> Policy | None:
        return self._by_id.get(policy_id)

    async def list_all(self) -> list[Policy]:
        return list(self._by_id.values())

    async def add(self, policy: Policy) -> None:
        if policy.id in self._by_id:
            raise AlreadyExists("policy already exists")
        self._by_id[policy.id] = policy

    async def update(self, policy: Policy) -> Policy | None:
        if policy.id not in self._by_id:
            return None
        self._by_id[policy.id] = policy
        return policy


class InMemoryAcknowledgmentRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, UUID], PolicyAcknowledgment] = {}

    async def get(self, user_id: str, policy_id: UUID) -> PolicyAcknowledgment | None:
        return self._store.get((user_id, policy_id))

    async def add(self, ack: PolicyAcknowledgment) -> None:
        key = (ack.user_id, ack.policy_id)
        if key in self._store:
            raise AlreadyExists("policy already acknowledged")
        self._store[key] = ack

    async def list_by_policy(self, policy_id: UUID) -> list[PolicyAcknowledgment]:
        return [a for a in self._store.values() if a.policy_id == policy_id]

    async def list_by_user(self, user_id: str) -> list[PolicyAcknowledgment]:
        return [a for a in self._store.values() if a.user_id == user_id]
