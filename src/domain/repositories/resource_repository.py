"""Project/team repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.resource import Resource, ResourceKind


class IResourceRepository(Protocol):
    """Repository interface for tenant-owned projects and teams."""

    async def create(self, resource: Resource) -> Resource:
        """Create a new project or team."""
        ...

    async def get_for_organization(
        self, organization_id: UUID, kind: ResourceKind
    ) -> list[Resource]:
        """Get non-archived resources of one kind for an organization."""
        ...

    async def archive_for_organization(self, organization_id: UUID) -> int:
        """Archive every resource of an organization. Returns count archived."""
        ...
