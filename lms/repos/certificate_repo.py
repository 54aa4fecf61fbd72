from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms.models.certificate import Certificate
from lms.services.errors import AlreadyExists


class CertificateRepo(Protocol):
    async def get_for(self, user_id: str, course_id: UUID) -> Certificate | None: ...
    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None: ...
    async def add(self, certificate: Certificate) -> None: ...
    async def update(self, certificate: Certificate) -> Certificate | None: ...
    async def list_by_user(self, user_id: str) -> list[Certificate]: ...
    async def list_by_course(self, course_id: UUID) -> list[Certificate]: ...


class InMemoryCertificateRepo:
    def __init__(self) -> None:
        self._by_pair: dict[tuple[str, UUID], Certificate] = {}
        self._by_certificate_id: dict[str, Certificate] = {}

    async def get_for(self, user_id: str, course_id: UUID) -> Certificate | None:
        return self._by_pair.get((user_id, course_id))

    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None:
        return self._by_certificate_id.get(certificate_id)

    async def add(self, certificate: Certificate) -> None:
        key = (certificate.user_id, certificate.course_id)
        if key in self._by_pair:
            raise AlreadyExists("certificate already issued for this course")
        if certificate.certificate_id in self._by_certificate_id:
            raise AlreadyExists("certificate id collision")
        self._by_pair[key] = certificate
        self._by_certificate_id[certificate.certificate_id] = certificate

    async def update(self, certificate: Certificate) -> Certificate | None:
        if certificate.certificate_id not in self._by_certificate_id:
            return None
        self._by_pair[(certificate.user_id, certificate.course_id)] = certificate
        self._by_certificate_id[certificate.certificate_id] = certificate
        return certificate

    async def list_by_user(self, user_id: str) -> list[Certificate]:
        return [c for c in self._by_pair.values() if c.user_id == user_id]

    async def list_by_course(self, course_id: UUID) -> list[Certificate]:
        return [c for c in self._by_pair.values() if c.course_id == course_id]
