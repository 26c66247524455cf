"""Organization service layer with business logic."""

from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import structlog

from core.exceptions import UserNotFoundError
from domain.entities.audit import Actions
from domain.entities.invitation import normalize_email
from domain.entities.organization import CREATOR_PERMISSIONS, Membership, Organization
from domain.entities.role import Role
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import require_member, require_member_with, require_organization
from domain.services.audit_service import AuditService

logger = structlog.get_logger()


class OrganizationService:
    """Service layer for Organization business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        audit_service: Optional["AuditService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._audit = audit_service

    async def list_for_user(self, user_id: UUID) -> list[tuple[Organization, Membership]]:
        """Organizations the user actively belongs to, with the user's membership."""
        async with self._uow_factory() as uow:
            return await uow.organizations.get_all_for_user(user_id)  # type: ignore[no-any-return]

    async def get(
        self, organization_id: UUID, user_id: UUID
    ) -> tuple[Organization, Membership]:
        """Get an organization, verifying membership."""
        async with self._uow_factory() as uow:
            organization = await require_organization(uow, organization_id)
            membership = await require_member(uow, organization_id, user_id)
            return organization, membership

    async def create(
        self,
        user_id: UUID,
        name: str,
        contact_email: str,
        description: str | None = None,
        settings: dict[str, Any] | None = None,
    ) -> Organization:
        """Create an organization and make the creator its admin.

        The new organization becomes the creator's current one if none is set.
        """
        async with self._uow_factory() as uow:
            user = await uow.users.get(user_id)
            if not user:
                raise UserNotFoundError(str(user_id))

            organization = Organization(
                name=name.strip(),
                contact_email=normalize_email(contact_email),
                description=description,
                created_by=user_id,
            )
            if settings:
                organization.settings.update(settings)

            created = await uow.organizations.create(organization)

            await uow.organizations.add_membership(
                Membership(
                    organization_id=created.id,
                    user_id=user_id,
                    role=Role.ADMIN,
                    permissions=list(CREATOR_PERMISSIONS),
                )
            )

            if user.current_organization_id is None:
                user.current_organization_id = created.id
                user.updated_at = datetime.utcnow()
                await uow.users.update(user)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    organization_id=created.id,
                    actor_id=user_id,
                    action=Actions.ORGANIZATION_CREATED,
                    entity_type="organization",
                    entity_id=created.id,
                )

            await uow.commit()

        logger.info("organization_created", organization_id=str(created.id))
        return created

    async def update(
        self,
        organization_id: UUID,
        user_id: UUID,
        name: str | None = None,
        description: str | None = None,
        contact_email: str | None = None,
        settings: dict[str, Any] | None = None,
    ) -> Organization:
        """Update an organization. Requires can_edit_organization."""
        async with self._uow_factory() as uow:
            organization = await require_organization(uow, organization_id)
            await require_member_with(uow, organization_id, user_id, "can_edit_organization")

            old_state = {
                "name": organization.name,
                "description": organization.description,
                "contact_email": organization.contact_email,
            }

            if name is not None:
                organization.name = name.strip()
            if description is not None:
                organization.description = description
            if contact_email is not None:
                organization.contact_email = normalize_email(contact_email)
            if settings:
                organization.settings = {**organization.settings, **settings}

            organization.updated_at = datetime.utcnow()
            updated = await uow.organizations.update(organization)

            if self._audit:
                new_state = {
                    "name": updated.name,
                    "description": updated.description,
                    "contact_email": updated.contact_email,
                }
                changes = AuditService.compute_diff(old_state, new_state)
                if changes:
                    await self._audit.log(
                        uow=uow,
                        organization_id=organization_id,
                        actor_id=user_id,
                        action=Actions.ORGANIZATION_UPDATED,
                        entity_type="organization",
                        entity_id=organization_id,
                        changes=changes,
                    )

            await uow.commit()
            return updated

    async def delete(self, organization_id: UUID, user_id: UUID) -> bool:
        """Delete an organization. Requires can_delete_organization.

        Memberships are removed, projects and teams archived, pending
        invitations go with the organization row, and users who had it as
        their current organization are left without one.
        """
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            await require_member_with(uow, organization_id, user_id, "can_delete_organization")

            members = await uow.organizations.delete_memberships(organization_id)
            archived = await uow.resources.archive_for_organization(organization_id)
            await uow.users.clear_current_organization(organization_id)
            deleted = await uow.organizations.delete(organization_id)

            await uow.commit()

        logger.info(
            "organization_deleted",
            organization_id=str(organization_id),
            memberships_removed=members,
            resources_archived=archived,
        )
        return deleted  # type: ignore[no-any-return]
