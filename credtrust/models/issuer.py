from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class IssuerStatus(StrEnum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"


class IssuerCategory(StrEnum):
    UNIVERSITY = "UNIVERSITY"
    EMPLOYER = "EMPLOYER"
    TRAINING_PROVIDER = "TRAINING_PROVIDER"
    GOVERNMENT = "GOVERNMENT"
    OTHER = "OTHER"


class IssuerIndustry(StrEnum):
    TECH = "TECH"
    FINANCE = "FINANCE"
    HEALTHCARE = "HEALTHCARE"
    EDUCATION = "EDUCATION"
    AUTOMOTIVE = "AUTOMOTIVE"
    AGRICULTURE = "AGRICULTURE"
    MANUFACTURING = "MANUFACTURING"
    RETAIL = "RETAIL"
    GOVERNMENT = "GOVERNMENT"
    NONPROFIT = "NONPROFIT"
    OTHER = "OTHER"


@dataclass(frozen=True, slots=True)
class Issuer:
    id: int
    owner_user_id: int
    name: str
    domain: str
    status: IssuerStatus = IssuerStatus.PENDING
    did: str | None = None
    logo_url: str | None = None
    category: IssuerCategory = IssuerCategory.OTHER
    industry: IssuerIndustry = IssuerIndustry.OTHER
    rejection_reason: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def new(
        *,
        owner_user_id: int,
        name: str,
        domain: str,
        logo_url: str | None = None,
        category: IssuerCategory = IssuerCategory.OTHER,
        industry: IssuerIndustry = IssuerIndustry.OTHER,
    ) -> Issuer:
        return Issuer(
            id=0,
            owner_user_id=owner_user_id,
            name=name,
            domain=domain.lower(),
            logo_url=logo_url,
            category=category,
            industry=industry,
        )

    @property
    def is_active(self) -> bool:
        return self.status == IssuerStatus.ACTIVE
