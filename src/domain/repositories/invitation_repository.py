"""Invitation repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.invitation import Invitation, InvitationStatus


class IInvitationRepository(Protocol):
    """Repository interface for Invitation entities."""

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation.

        Raises IntegrityError when a pending invitation already exists for
        the same email and organization.
        """
        ...

    async def get_by_token(self, token: str) -> Invitation | None:
        """Get an invitation by its token, whatever its status."""
        ...

    async def get_pending_by_token_email(self, token: str, email: str) -> Invitation | None:
        """Get a pending invitation by token and invitee email (expired or not)."""
        ...

    async def get_pending_for_organization(self, organization_id: UUID) -> list[Invitation]:
        """Get pending, unexpired invitations of an organization, newest first."""
        ...

    async def get_pending_for_email(self, email: str) -> list[Invitation]:
        """Get pending, unexpired invitations addressed to an email."""
        ...

    async def get_pending_for_organization_email(
        self, organization_id: UUID, email: str
    ) -> Invitation | None:
        """Get the pending, unexpired invitation for an organization and email."""
        ...

    async def expire_stale_for(self, organization_id: UUID, email: str) -> int:
        """Expire pending invitations past their deadline for one organization and email."""
        ...

    async def transition(
        self,
        id: UUID,
        from_status: InvitationStatus,
        to_status: InvitationStatus,
    ) -> Invitation | None:
        """Atomically move an invitation between statuses.

        Returns None when the invitation was not in ``from_status``.
        """
        ...

    async def expire_old_invitations(self) -> int:
        """Mark all expired pending invitations. Returns count of updated rows."""
        ...
