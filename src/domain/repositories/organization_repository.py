"""Organization repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.organization import MemberView, Membership, Organization


class IOrganizationRepository(Protocol):
    """Repository interface for Organization entities and their memberships."""

    async def get(self, id: UUID) -> Organization | None:
        """Get an organization by ID."""
        ...

    async def get_all_for_user(self, user_id: UUID) -> list[tuple[Organization, Membership]]:
        """Get organizations where the user has an active membership."""
        ...

    async def create(self, organization: Organization) -> Organization:
        """Create a new organization."""
        ...

    async def update(self, organization: Organization) -> Organization:
        """Update an existing organization."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete an organization row."""
        ...

    async def get_membership(self, organization_id: UUID, user_id: UUID) -> Membership | None:
        """Get a user's membership (active or not) in an organization."""
        ...

    async def get_members(self, organization_id: UUID) -> list[MemberView]:
        """Get active and banned memberships with member identity."""
        ...

    async def add_membership(self, membership: Membership) -> Membership:
        """Insert a membership. Raises IntegrityError if one exists for the pair."""
        ...

    async def update_membership(self, membership: Membership) -> Membership:
        """Persist changes to an existing membership."""
        ...

    async def delete_memberships(self, organization_id: UUID) -> int:
        """Remove every membership of an organization."""
        ...

    async def count_active_admins(self, organization_id: UUID) -> int:
        """Count active, non-banned admins."""
        ...
