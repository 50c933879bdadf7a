"""Pydantic request/response bodies shared by the routers."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from credtrust.models.credential import Credential, CredentialPage
from credtrust.models.issuer import Issuer
from credtrust.models.team import TeamMembership


class CredentialIn(BaseModel):
    category: str
    title: str
    sub_type: str
    file_url: str | None = None
    issuer_id: int | None = None


class CredentialOut(BaseModel):
    id: int
    candidate_id: int
    category: str
    title: str
    sub_type: str
    status: str
    verified: bool
    issuer_id: int | None
    file_url: str | None
    has_vc: bool
    verified_at: datetime | None
    created_at: datetime

    @classmethod
    def from_domain(cls, c: Credential) -> CredentialOut:
        return cls(
            id=c.id,
            candidate_id=c.candidate_id,
            category=c.category.value,
            title=c.title,
            sub_type=c.sub_type,
            status=c.status.value,
            verified=c.verified,
            issuer_id=c.issuer_id,
            file_url=c.file_url,
            has_vc=c.has_vc,
            verified_at=c.verified_at,
            created_at=c.created_at,
        )


class StatusCountsOut(BaseModel):
    verified: int
    pending: int
    rejected: int
    unverified: int


class CredentialPageOut(BaseModel):
    rows: list[CredentialOut]
    page: int
    page_size: int
    has_next: bool
    status_counts: StatusCountsOut

    @classmethod
    def from_domain(cls, page: CredentialPage, *, number: int, size: int) -> CredentialPageOut:
        counts = page.status_counts
        return cls(
            rows=[CredentialOut.from_domain(c) for c in page.rows],
            page=number,
            page_size=size,
            has_next=page.has_next,
            status_counts=StatusCountsOut(
                verified=counts.verified,
                pending=counts.pending,
                rejected=counts.rejected,
                unverified=counts.unverified,
            ),
        )


class VcVerificationOut(BaseModel):
    credential_id: int
    status: str
    vc_valid: bool


class DidIn(BaseModel):
    # Omitted or blank: mint a new DID on the network.
    did: str | None = None


class TeamDidOut(BaseModel):
    team_id: int
    did: str


class PlatformDidOut(BaseModel):
    did: str | None


class MembershipOut(BaseModel):
    team_id: int
    user_id: int
    role: str
    joined_at: datetime

    @classmethod
    def from_domain(cls, m: TeamMembership) -> MembershipOut:
        return cls(team_id=m.team_id, user_id=m.user_id, role=m.role, joined_at=m.joined_at)


class IssuerIn(BaseModel):
    name: str
    domain: str
    logo_url: str | None = None
    category: str = "OTHER"
    industry: str = "OTHER"


class IssuerStatusIn(BaseModel):
    status: str
    rejection_reason: str | None = Field(default=None, max_length=2000)


class IssuerOut(BaseModel):
    id: int
    owner_user_id: int
    name: str
    domain: str
    logo_url: str | None
    did: str | None
    status: str
    category: str
    industry: str
    rejection_reason: str | None

    @classmethod
    def from_domain(cls, i: Issuer) -> IssuerOut:
        return cls(
            id=i.id,
            owner_user_id=i.owner_user_id,
            name=i.name,
            domain=i.domain,
            logo_url=i.logo_url,
            did=i.did,
            status=i.status.value,
            category=i.category.value,
            industry=i.industry.value,
            rejection_reason=i.rejection_reason,
        )


class IssuerDeletedOut(BaseModel):
    issuer_id: int
    credentials_reset: int


class UserDeletedOut(BaseModel):
    user_id: int
    activity_logs: int
    pipelines: int
    pipeline_entries: int
    quiz_attempts: int
    credentials_deleted: int
    credentials_detached: int
    issuer_deleted: bool
    memberships: int
    teams_deleted: int
    teams_rehomed: int
