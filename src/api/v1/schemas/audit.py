"""Pydantic schemas for Audit Log API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AuditLogResponse(BaseModel):
    """Schema for an audit log entry response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    actor_id: UUID
    action: str
    entity_type: str
    entity_id: UUID
    changes: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Schema for paginated audit log response."""

    data: list[AuditLogResponse]
    meta: dict[str, Any] = Field(default_factory=dict)
