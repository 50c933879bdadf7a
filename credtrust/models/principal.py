from __future__ import annotations

from dataclasses import dataclass

ROLES = frozenset({"candidate", "recruiter", "issuer", "admin"})


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    The surrounding system owns sessions; the lifecycle services only ever
    see this opaque (user_id, role) pair.

        user_id: subject from JWT
        role: platform role (candidate|recruiter|issuer|admin)
    """

    user_id: int
    role: str

    def has_role(self, role: str) -> bool:
        return self.role == role

    def is_platform_admin(self) -> bool:
        return self.role == "admin"
