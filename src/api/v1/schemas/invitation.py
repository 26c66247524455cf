"""Pydantic schemas for Invitation API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.v1.schemas.common import check_email
from domain.entities.invitation import Invitation
from domain.entities.role import Role


class CreateInvitationRequest(BaseModel):
    """Schema for inviting someone to an organization."""

    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=100)
    role: Role = Role.EMPLOYEE
    department: str | None = Field(None, max_length=100)
    custom_message: str | None = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return check_email(v)


class AcceptInvitationRequest(BaseModel):
    """Schema for accepting an invitation as the signed-in user."""

    token: str = Field(..., min_length=1, max_length=128)


class InvitationResponse(BaseModel):
    """Schema for Invitation response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "organization_id": "456e4567-e89b-12d3-a456-426614174000",
                "token": "9f2c...e01a",
                "email": "jane@example.com",
                "name": "Jane Doe",
                "role": "employee",
                "department": "Engineering",
                "status": "pending",
                "inviter_id": "789e4567-e89b-12d3-a456-426614174000",
                "inviter_name": "Sam Admin",
                "inviter_email": "sam@example.com",
                "is_new_user": True,
                "created_at": "2026-02-01T10:00:00",
                "expires_at": "2026-02-02T10:00:00",
            }
        },
    )

    id: UUID
    organization_id: UUID
    token: str
    email: str
    name: str
    role: str
    department: str | None = None
    status: str
    inviter_id: UUID
    inviter_name: str
    inviter_email: str
    is_new_user: bool
    custom_message: str | None = None
    created_at: datetime
    expires_at: datetime
    accepted_at: datetime | None = None

    @classmethod
    def from_entity(cls, invitation: Invitation) -> "InvitationResponse":
        return cls(
            id=invitation.id,
            organization_id=invitation.organization_id,
            token=invitation.token,
            email=invitation.email,
            name=invitation.name,
            role=invitation.role.value,
            department=invitation.department,
            status=invitation.status.value,
            inviter_id=invitation.inviter_id,
            inviter_name=invitation.inviter_name,
            inviter_email=invitation.inviter_email,
            is_new_user=invitation.is_new_user,
            custom_message=invitation.custom_message,
            created_at=invitation.created_at,
            expires_at=invitation.expires_at,
            accepted_at=invitation.accepted_at,
        )


class InvitationListResponse(BaseModel):
    """Schema for list of Invitations response."""

    data: list[InvitationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class InvitationCreatedResponse(BaseModel):
    """Schema for invitation creation response."""

    data: InvitationResponse
    invite_link: str
    email_sent: bool = Field(
        ...,
        description="Whether the invitation email went out. The invitation "
        "exists either way and the link can be shared manually.",
    )


class InvitationPreview(BaseModel):
    """What an invitee may see about an invitation before accepting."""

    organization_id: UUID
    email: str
    name: str
    role: str
    department: str | None = None
    inviter_name: str
    is_new_user: bool
    expires_at: datetime


class ValidateInvitationResponse(BaseModel):
    """Schema for token validation; business failures are reported, not raised."""

    valid: bool
    reason: str | None = None
    invitation: InvitationPreview | None = None


class AcceptInvitationResponse(BaseModel):
    """Schema for accepting an invitation response."""

    organization_id: UUID
    organization_name: str
    role: str
    message: str = "Invitation accepted successfully"
