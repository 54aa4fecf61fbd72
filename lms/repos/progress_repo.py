from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from lms.models.progress import ProgressRecord
from lms.services.errors import AlreadyExists, ConcurrentModification


class ProgressRepo(Protocol):
    """Storage for progress records, unique per (user_id, course_id).

    ``add`` stores a new record at version 1.  ``update`` is a
    compare-and-swap: it succeeds only if the stored version still equals
    ``record.version`` and stores the record at ``version + 1``.  Both
    return the record as stored.
    """

    async def get(self, user_id: str, course_id: UUID) -> ProgressRecord | None: ...
    async def add(self, record: ProgressRecord) -> ProgressRecord: ...
    async def update(self, record: ProgressRecord) -> ProgressRecord: ...
    async def list_by_user(self, user_id: str) -> list[ProgressRecord]: ...
    async def list_by_course(self, course_id: UUID) -> list[ProgressRecord]: ...
    async def delete_by_course(self, course_id: UUID) -> int: ...


class InMemoryProgressRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, UUID], ProgressRecord] = {}

    async def get(self, user_id: str, course_id: UUID) -> ProgressRecord | None:
        return self._store.get((user_id, course_id))

    async def add(self, record: ProgressRecord) -> ProgressRecord:
        key = (record.user_id, record.course_id)
        if key in self._store:
            raise AlreadyExists("progress record already exists")
        stored = replace(record, version=1)
        self._store[key] = stored
        return stored

    async def update(self, record: ProgressRecord) -> ProgressRecord:
        key = (record.user_id, record.course_id)
        current = self._store.get(key)
        if current is None or current.version != record.version:
            raise ConcurrentModification(
                "progress record changed since it was read; reload and retry"
            )
        stored = replace(record, version=record.version + 1)
        self._store[key] = stored
        return stored

    async def list_by_user(self, user_id: str) -> list[ProgressRecord]:
        return [r for r in self._store.values() if r.user_id == user_id]

    async def list_by_course(self, course_id: UUID) -> list[ProgressRecord]:
        return [r for r in self._store.values() if r.course_id == course_id]

    async def delete_by_course(self, course_id: UUID) -> int:
        keys = [k for k in self._store if k[1] == course_id]
        for k in keys:
            del self._store[k]
        return len(keys)
