from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms.models.course import Course
from lms.services.errors import AlreadyExists


class CourseRepo(Protocol):
    async def get(self, course_id: UUID) -> Course | None: ...
    async def list_all(self) -> list[Course]: ...
    async def add(self, course: Course) -> None: ...
    async def update(self, course: Course) -> Course | None: ...
    async def delete(self, course_id: UUID) -> bool: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Course] = {}

    async def get(self, course_id: UUID) -> Course | None:
        return self._by_id.get(course_id)

    async def list_all(self) -> list[Course]:
        return list(self._by_id.values())

    async def add(self, course: Course) -> None:
        if course.id in self._by_id:
            raise AlreadyExists("course already exists")
        self._by_id[course.id] = course

    async def update(self, course: Course) -> Course | None:
        if course.id not in self._by_id:
            return None
        self._by_id[course.id] = course
        return course

    async def delete(self, course_id: UUID) -> bool:
        return self._by_id.pop(course_id, None) is not None
