"""SQLAlchemy implementation of Invitation repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.invitation import Invitation, InvitationStatus
from domain.entities.role import Role
from infrastructure.database.models import InvitationModel


class SQLAlchemyInvitationRepository:
    """SQLAlchemy implementation of IInvitationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        model = self._to_model(invitation)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get_by_token(self, token: str) -> Invitation | None:
        """Get an invitation by its token, whatever its status."""
        stmt = select(InvitationModel).where(InvitationModel.token == token)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_pending_by_token_email(self, token: str, email: str) -> Invitation | None:
        """Get a pending invitation by token and invitee email (expired or not)."""
        stmt = select(InvitationModel).where(
            InvitationModel.token == token,
            InvitationModel.email == email,
            InvitationModel.status == InvitationStatus.PENDING.value,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_pending_for_organization(self, organization_id: UUID) -> list[Invitation]:
        """Get pending, unexpired invitations of an organization, newest first."""
        now = datetime.utcnow()
        stmt = (
            select(InvitationModel)
            .where(
                InvitationModel.organization_id == organization_id,
                InvitationModel.status == InvitationStatus.PENDING.value,
                InvitationModel.expires_at > now,
            )
            .order_by(InvitationModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_pending_for_email(self, email: str) -> list[Invitation]:
        """Get all pending (non-expired) invitations for an email address."""
        now = datetime.utcnow()
        stmt = (
            select(InvitationModel)
            .where(
                InvitationModel.email == email,
                InvitationModel.status == InvitationStatus.PENDING.value,
                InvitationModel.expires_at > now,
            )
            .order_by(InvitationModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_pending_for_organization_email(
        self, organization_id: UUID, email: str
    ) -> Invitation | None:
        """Get the pending invitation for a specific organization and email."""
        now = datetime.utcnow()
        stmt = select(InvitationModel).where(
            InvitationModel.organization_id == organization_id,
            InvitationModel.email == email,
            InvitationModel.status == InvitationStatus.PENDING.value,
            InvitationModel.expires_at > now,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def expire_stale_for(self, organization_id: UUID, email: str) -> int:
        """Expire pending invitations past their deadline for one organization and email."""
        now = datetime.utcnow()
        stmt = (
            update(InvitationModel)
            .where(
                InvitationModel.organization_id == organization_id,
                InvitationModel.email == email,
                InvitationModel.status == InvitationStatus.PENDING.value,
                InvitationModel.expires_at <= now,
            )
            .values(status=InvitationStatus.EXPIRED.value, updated_at=now)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def transition(
        self,
        id: UUID,
        from_status: InvitationStatus,
        to_status: InvitationStatus,
    ) -> Invitation | None:
        """Conditionally move an invitation between statuses.

        The status check and the write are one UPDATE, so only one of several
        concurrent callers sees a row change. Returns None for the others.
        """
        now = datetime.utcnow()
        values: dict[str, object] = {"status": to_status.value, "updated_at": now}
        if to_status == InvitationStatus.ACCEPTED:
            values["accepted_at"] = now

        stmt = (
            update(InvitationModel)
            .where(
                InvitationModel.id == id,
                InvitationModel.status == from_status.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        if result.rowcount != 1:  # type: ignore[attr-defined]
            return None

        refreshed = await self._session.execute(
            select(InvitationModel)
            .where(InvitationModel.id == id)
            .execution_options(populate_existing=True)
        )
        return self._to_entity(refreshed.scalar_one())

    async def expire_old_invitations(self) -> int:
        """Mark all expired pending invitations. Returns count of updated rows."""
        now = datetime.utcnow()
        stmt = (
            update(InvitationModel)
            .where(
                InvitationModel.status == InvitationStatus.PENDING.value,
                InvitationModel.expires_at < now,
            )
            .values(status=InvitationStatus.EXPIRED.value, updated_at=now)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    def _to_entity(self, model: InvitationModel) -> Invitation:
        """Convert ORM model to domain entity."""
        return Invitation(
            id=model.id,
            token=model.token,
            organization_id=model.organization_id,
            email=model.email,
            name=model.name,
            role=Role(model.role),
            department=model.department,
            inviter_id=model.inviter_id,
            inviter_name=model.inviter_name,
            inviter_email=model.inviter_email,
            status=InvitationStatus(model.status),
            is_new_user=model.is_new_user,
            custom_message=model.custom_message,
            created_at=model.created_at,
            expires_at=model.expires_at,
            accepted_at=model.accepted_at,
        )

    def _to_model(self, entity: Invitation) -> InvitationModel:
        """Convert domain entity to ORM model."""
        return InvitationModel(
            id=entity.id,
            token=entity.token,
            organization_id=entity.organization_id,
            email=entity.email,
            name=entity.name,
            role=entity.role.value,
            department=entity.department,
            inviter_id=entity.inviter_id,
            inviter_name=entity.inviter_name,
            inviter_email=entity.inviter_email,
            status=entity.status.value,
            is_new_user=entity.is_new_user,
            custom_message=entity.custom_message,
            created_at=entity.created_at,
            expires_at=entity.expires_at,
            accepted_at=entity.accepted_at,
        )
