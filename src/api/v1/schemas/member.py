"""Pydantic schemas for organization members."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.entities.organization import BanDuration, MemberView, Membership
from domain.entities.role import Role


class UpdateMemberRoleRequest(BaseModel):
    role: Role


class BanMemberRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
    duration: BanDuration = BanDuration.LIFETIME


class MemberResponse(BaseModel):
    """Schema for an organization member."""

    user_id: UUID
    email: str = ""
    name: str = ""
    role: str
    is_active: bool
    joined_at: datetime
    banned: bool = False
    ban_reason: Optional[str] = None
    ban_expires_at: Optional[datetime] = None

    @classmethod
    def from_membership(
        cls, membership: Membership, email: str = "", name: str = ""
    ) -> "MemberResponse":
        return cls(
            user_id=membership.user_id,
            email=email,
            name=name,
            role=membership.role.value,
            is_active=membership.is_active,
            joined_at=membership.joined_at,
            banned=membership.banned,
            ban_reason=membership.ban_reason,
            ban_expires_at=membership.ban_expires_at,
        )

    @classmethod
    def from_view(cls, view: MemberView) -> "MemberResponse":
        return cls.from_membership(view.membership, email=view.email, name=view.name)


class MemberListResponse(BaseModel):
    data: list[MemberResponse]
    meta: dict[str, Any] = Field(default_factory=dict)
