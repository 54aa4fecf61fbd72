from __future__ import annotations

from dataclasses import dataclass

# Roles that manage the catalog and see every course regardless of audience.
COMPLIANCE_ROLES = frozenset({"compliance", "admin"})


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.

        user_id: subject from the JWT
        name: display name, copied onto certificates
        department: used by course audience rules
        roles: employee, manager, compliance, admin, ...
    """

    user_id: str
    roles: frozenset[str]
    name: str = ""
    department: str | None = None

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str] | frozenset[str]) -> bool:
        return bool(self.roles & roles)

    def is_compliance(self) -> bool:
        return self.has_any_role(COMPLIANCE_ROLES)
