"""Pydantic schemas for projects and teams."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ResourceCreate(BaseModel):
    """Schema for creating a project or team."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)


class ResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    name: str
    description: Optional[str]
    created_by: UUID
    created_at: datetime


class ResourceListResponse(BaseModel):
    data: list[ResourceResponse]
    meta: dict[str, Any] = Field(default_factory=dict)
