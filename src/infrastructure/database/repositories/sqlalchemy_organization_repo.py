"""SQLAlchemy implementation of Organization repository."""

from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.organization import MemberView, Membership, Organization
from domain.entities.role import Role
from infrastructure.database.models import (
    AuditLogModel,
    InvitationModel,
    OrganizationMembershipModel,
    OrganizationModel,
    UserModel,
)


class SQLAlchemyOrganizationRepository:
    """SQLAlchemy implementation of IOrganizationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Organization | None:
        """Get an organization by ID."""
        stmt = select(OrganizationModel).where(OrganizationModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_all_for_user(self, user_id: UUID) -> list[tuple[Organization, Membership]]:
        """Get organizations where the user has an active membership."""
        stmt = (
            select(OrganizationModel, OrganizationMembershipModel)
            .join(
                OrganizationMembershipModel,
                OrganizationMembershipModel.organization_id == OrganizationModel.id,
            )
            .where(
                OrganizationMembershipModel.user_id == user_id,
                OrganizationMembershipModel.is_active.is_(True),
            )
            .order_by(OrganizationModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [
            (self._to_entity(org), self._membership_to_entity(membership))
            for org, membership in result.all()
        ]

    async def create(self, organization: Organization) -> Organization:
        """Create a new organization."""
        model = self._to_model(organization)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, organization: Organization) -> Organization:
        """Update an existing organization."""
        stmt = select(OrganizationModel).where(OrganizationModel.id == organization.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Organization {organization.id} not found")

        model.name = organization.name
        model.description = organization.description
        model.contact_email = organization.contact_email
        model.settings = organization.settings
        model.subscription = organization.subscription
        model.is_active = organization.is_active
        model.updated_at = organization.updated_at

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete an organization with its invitations and audit trail."""
        stmt = select(OrganizationModel).where(OrganizationModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return False

        await self._session.execute(
            delete(InvitationModel).where(InvitationModel.organization_id == id)
        )
        await self._session.execute(
            delete(AuditLogModel).where(AuditLogModel.organization_id == id)
        )
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def get_membership(self, organization_id: UUID, user_id: UUID) -> Membership | None:
        """Get a user's membership (active or not) in an organization."""
        stmt = select(OrganizationMembershipModel).where(
            OrganizationMembershipModel.organization_id == organization_id,
            OrganizationMembershipModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._membership_to_entity(model) if model else None

    async def get_members(self, organization_id: UUID) -> list[MemberView]:
        """Get active and banned memberships with member identity."""
        stmt = (
            select(OrganizationMembershipModel, UserModel.email, UserModel.name)
            .join(UserModel, UserModel.id == OrganizationMembershipModel.user_id)
            .where(
                OrganizationMembershipModel.organization_id == organization_id,
                or_(
                    OrganizationMembershipModel.is_active.is_(True),
                    OrganizationMembershipModel.banned.is_(True),
                ),
            )
            .order_by(OrganizationMembershipModel.joined_at)
        )
        result = await self._session.execute(stmt)
        return [
            MemberView(
                membership=self._membership_to_entity(model),
                email=email,
                name=name,
            )
            for model, email, name in result.all()
        ]

    async def add_membership(self, membership: Membership) -> Membership:
        """Insert a membership."""
        model = self._membership_to_model(membership)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._membership_to_entity(model)

    async def update_membership(self, membership: Membership) -> Membership:
        """Persist changes to an existing membership."""
        stmt = select(OrganizationMembershipModel).where(
            OrganizationMembershipModel.id == membership.id
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError("Membership not found")

        model.role = membership.role.value
        model.is_active = membership.is_active
        model.joined_at = membership.joined_at
        model.permissions = list(membership.permissions)
        model.banned = membership.banned
        model.ban_reason = membership.ban_reason
        model.ban_expires_at = membership.ban_expires_at
        model.banned_by = membership.banned_by
        model.banned_at = membership.banned_at

        await self._session.flush()
        return self._membership_to_entity(model)

    async def delete_memberships(self, organization_id: UUID) -> int:
        """Remove every membership of an organization."""
        stmt = delete(OrganizationMembershipModel).where(
            OrganizationMembershipModel.organization_id == organization_id
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def count_active_admins(self, organization_id: UUID) -> int:
        """Count active, non-banned admins."""
        stmt = (
            select(func.count())
            .select_from(OrganizationMembershipModel)
            .where(
                OrganizationMembershipModel.organization_id == organization_id,
                OrganizationMembershipModel.role == Role.ADMIN.value,
                OrganizationMembershipModel.is_active.is_(True),
                OrganizationMembershipModel.banned.is_(False),
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    def _to_entity(self, model: OrganizationModel) -> Organization:
        """Convert ORM model to domain entity."""
        return Organization(
            id=model.id,
            name=model.name,
            description=model.description,
            contact_email=model.contact_email,
            settings=model.settings or {},
            subscription=model.subscription or {},
            created_by=model.created_by,
            is_active=model.is_active,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Organization) -> OrganizationModel:
        """Convert domain entity to ORM model."""
        return OrganizationModel(
            id=entity.id,
            name=entity.name,
            description=entity.description,
            contact_email=entity.contact_email,
            settings=entity.settings,
            subscription=entity.subscription,
            created_by=entity.created_by,
            is_active=entity.is_active,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def _membership_to_entity(self, model: OrganizationMembershipModel) -> Membership:
        """Convert membership ORM model to domain entity."""
        return Membership(
            id=model.id,
            organization_id=model.organization_id,
            user_id=model.user_id,
            role=Role(model.role),
            is_active=model.is_active,
            joined_at=model.joined_at,
            permissions=list(model.permissions or []),
            banned=model.banned,
            ban_reason=model.ban_reason,
            ban_expires_at=model.ban_expires_at,
            banned_by=model.banned_by,
            banned_at=model.banned_at,
        )

    def _membership_to_model(self, entity: Membership) -> OrganizationMembershipModel:
        """Convert membership domain entity to ORM model."""
        return OrganizationMembershipModel(
            id=entity.id,
            organization_id=entity.organization_id,
            user_id=entity.user_id,
            role=entity.role.value,
            is_active=entity.is_active,
            joined_at=entity.joined_at,
            permissions=list(entity.permissions),
            banned=entity.banned,
            ban_reason=entity.ban_reason,
            ban_expires_at=entity.ban_expires_at,
            banned_by=entity.banned_by,
            banned_at=entity.banned_at,
        )
