from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class User:
    id: int
    email: str
    name: str = ""
    role: str = "candidate"  # candidate|recruiter|issuer|admin

    @staticmethod
    def new(*, email: str, name: str = "", role: str = "candidate") -> User:
        # id is assigned by the repo on insert
        return User(id=0, email=email.strip().lower(), name=name.strip(), role=role)

    @property
    def display_name(self) -> str:
        return self.name or self.email or "Unknown"
