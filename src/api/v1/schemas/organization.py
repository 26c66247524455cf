"""Pydantic schemas for Organization API."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.v1.schemas.common import check_email


class OrganizationCreate(BaseModel):
    """Schema for creating an Organization."""

    name: str = Field(..., min_length=1, max_length=100)
    contact_email: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    settings: Optional[dict[str, Any]] = None

    @field_validator("contact_email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return check_email(v)


class OrganizationUpdate(BaseModel):
    """Schema for updating an Organization (all fields optional)."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    contact_email: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    settings: Optional[dict[str, Any]] = None

    @field_validator("contact_email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return check_email(v) if v is not None else None


class OrganizationResponse(BaseModel):
    """Schema for Organization response, with the caller's role when known."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Acme",
                "description": "Widgets and more",
                "contact_email": "ops@acme.test",
                "created_by": "456e4567-e89b-12d3-a456-426614174000",
                "role": "admin",
                "created_at": "2026-02-01T10:00:00",
                "updated_at": "2026-02-01T10:00:00",
            }
        },
    )

    id: UUID
    name: str
    description: Optional[str]
    contact_email: str
    settings: dict[str, Any] = Field(default_factory=dict)
    subscription: dict[str, Any] = Field(default_factory=dict)
    created_by: UUID
    is_active: bool
    role: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OrganizationListResponse(BaseModel):
    """Schema for list of Organizations response."""

    data: list[OrganizationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class SwitchOrganizationRequest(BaseModel):
    organization_id: UUID


class SwitchOrganizationResponse(BaseModel):
    """The organization now current for the user, with the user's capabilities there."""

    organization_id: UUID
    role: str
    permissions: dict[str, bool]
