"""Audit log repository protocol."""

from typing import List, Protocol
from uuid import UUID

from domain.entities.audit import AuditLog


class IAuditRepository(Protocol):
    """Repository interface for AuditLog entities."""

    async def create(self, entry: AuditLog) -> AuditLog:
        """Create a new audit log entry."""
        ...

    async def get_for_organization(
        self,
        organization_id: UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditLog]:
        """Get audit entries for an organization, ordered by newest first."""
        ...
