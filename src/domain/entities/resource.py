"""Tenant-owned resources: projects and teams."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4


class ResourceKind(StrEnum):
    PROJECT = "project"
    TEAM = "team"


@dataclass
class Resource:
    """A project or team belonging to one organization.

    Deleting the organization archives its resources instead of removing them.
    """

    organization_id: UUID
    kind: ResourceKind
    name: str
    created_by: UUID
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    is_archived: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)
