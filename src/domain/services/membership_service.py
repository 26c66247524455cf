"""Membership service: joining organizations and managing members."""

from collections.abc import Callable
from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog

from core.exceptions import (
    InsufficientPermissionsError,
    LastAdminError,
    MemberBannedError,
    MemberNotFoundError,
    ValidationFailedError,
)
from domain.entities.audit import Actions
from domain.entities.invitation import Invitation
from domain.entities.organization import BanDuration, MemberView, Membership, ban_expiry
from domain.entities.role import Permissions, Role, get_role_permissions
from domain.entities.user import UserStatus
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import (
    require_member,
    require_member_with,
    require_organization,
    resolve_membership,
)
from domain.services.audit_service import AuditService

logger = structlog.get_logger()


class MembershipService:
    """Service layer for organization memberships."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        audit_service: Optional["AuditService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._audit = audit_service

    async def apply_invitation(
        self,
        uow: IUnitOfWork,
        user_id: UUID,
        invitation: Invitation,
    ) -> Membership | None:
        """Give a user the membership an accepted invitation grants.

        Runs inside the caller's transaction. An existing active membership is
        left untouched, so applying the same invitation twice adds nothing.
        An inactive (removed) membership is reactivated with the invited role.

        Returns:
            The resulting membership, or None if the user does not exist.

        Raises:
            MemberBannedError: If the user is banned from the organization.
        """
        user = await uow.users.get(user_id)
        if not user:
            logger.warning(
                "membership_user_missing",
                user_id=str(user_id),
                organization_id=str(invitation.organization_id),
            )
            return None

        membership = await resolve_membership(uow, invitation.organization_id, user_id)
        if membership and membership.banned:
            raise MemberBannedError(str(invitation.organization_id))

        if membership is None:
            membership = await uow.organizations.add_membership(
                Membership(
                    organization_id=invitation.organization_id,
                    user_id=user_id,
                    role=invitation.role,
                )
            )
        elif not membership.is_active:
            membership.role = invitation.role
            membership.is_active = True
            membership.joined_at = datetime.utcnow()
            membership = await uow.organizations.update_membership(membership)

        if user.current_organization_id is None:
            user.current_organization_id = invitation.organization_id
        user.status = UserStatus.ACTIVE
        user.is_active = True
        user.updated_at = datetime.utcnow()
        await uow.users.update(user)

        return membership

    async def list_members(self, organization_id: UUID, user_id: UUID) -> list[MemberView]:
        """List active and banned members. Requires membership."""
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            await require_member(uow, organization_id, user_id)
            return await uow.organizations.get_members(organization_id)  # type: ignore[no-any-return]

    async def update_member_role(
        self,
        organization_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
        role: Role,
    ) -> Membership:
        """Change a member's role. Requires can_manage_members.

        Cannot change own role. Only admins can grant or take away the admin role.
        """
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            actor = await require_member_with(
                uow, organization_id, user_id, "can_manage_members"
            )

            if user_id == target_user_id:
                raise InsufficientPermissionsError("cannot change own role")

            target = await self._require_target(uow, organization_id, target_user_id)
            self._guard_admin_role(actor, target.role, role)

            if target.role == Role.ADMIN and role != Role.ADMIN:
                await self._require_other_admin(uow, organization_id)

            old_role = target.role
            target.role = role
            updated = await uow.organizations.update_membership(target)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    organization_id=organization_id,
                    actor_id=user_id,
                    action=Actions.MEMBER_ROLE_CHANGED,
                    entity_type="member",
                    entity_id=target_user_id,
                    changes={"role": {"old": old_role.value, "new": role.value}},
                )

            await uow.commit()
            return updated

    async def remove_member(
        self,
        organization_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
    ) -> Membership:
        """Soft-deactivate a membership. Requires can_manage_members."""
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            actor = await require_member_with(
                uow, organization_id, user_id, "can_manage_members"
            )

            if user_id == target_user_id:
                raise ValidationFailedError("Cannot remove yourself from the organization")

            target = await self._require_target(uow, organization_id, target_user_id)
            self._guard_admin_role(actor, target.role)

            if target.role == Role.ADMIN and target.is_active:
                await self._require_other_admin(uow, organization_id)

            target.is_active = False
            updated = await uow.organizations.update_membership(target)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    organization_id=organization_id,
                    actor_id=user_id,
                    action=Actions.MEMBER_REMOVED,
                    entity_type="member",
                    entity_id=target_user_id,
                )

            await uow.commit()
            return updated

    async def ban_member(
        self,
        organization_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
        reason: str,
        duration: BanDuration = BanDuration.LIFETIME,
    ) -> Membership:
        """Ban a member. Requires can_ban_members (admins)."""
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            await require_member_with(uow, organization_id, user_id, "can_ban_members")

            if user_id == target_user_id:
                raise ValidationFailedError("Cannot ban yourself")

            target = await self._require_target(uow, organization_id, target_user_id)
            if target.role == Role.ADMIN and target.is_active:
                await self._require_other_admin(uow, organization_id)

            target.ban(banned_by=user_id, reason=reason, expires_at=ban_expiry(duration))
            updated = await uow.organizations.update_membership(target)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    organization_id=organization_id,
                    actor_id=user_id,
                    action=Actions.MEMBER_BANNED,
                    entity_type="member",
                    entity_id=target_user_id,
                    metadata={"reason": reason, "duration": duration.value},
                )

            await uow.commit()
            logger.info(
                "member_banned",
                organization_id=str(organization_id),
                user_id=str(target_user_id),
                duration=duration.value,
            )
            return updated

    async def unban_member(
        self,
        organization_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
    ) -> Membership:
        """Lift a ban and reactivate the membership. Requires can_ban_members."""
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            await require_member_with(uow, organization_id, user_id, "can_ban_members")

            target = await self._require_target(uow, organization_id, target_user_id)
            if not target.banned:
                raise ValidationFailedError("User is not banned")

            target.lift_ban()
            updated = await uow.organizations.update_membership(target)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    organization_id=organization_id,
                    actor_id=user_id,
                    action=Actions.MEMBER_UNBANNED,
                    entity_type="member",
                    entity_id=target_user_id,
                )

            await uow.commit()
            return updated

    async def switch_organization(
        self, user_id: UUID, organization_id: UUID
    ) -> tuple[Membership, Permissions]:
        """Make an organization the user's current one. Requires active membership."""
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            membership = await require_member(uow, organization_id, user_id)

            user = await uow.users.get(user_id)
            if user:
                user.current_organization_id = organization_id
                user.updated_at = datetime.utcnow()
                await uow.users.update(user)

            await uow.commit()
            return membership, get_role_permissions(membership.role)

    # --- Internal helpers ---

    @staticmethod
    async def _require_target(
        uow: IUnitOfWork, organization_id: UUID, target_user_id: UUID
    ) -> Membership:
        target = await resolve_membership(uow, organization_id, target_user_id)
        if not target:
            raise MemberNotFoundError(str(target_user_id))
        return target

    @staticmethod
    def _guard_admin_role(actor: Membership, *roles: Role) -> None:
        """Only admins may act on, or assign, the admin role."""
        if actor.role == Role.ADMIN:
            return
        for role in roles:
            if role == Role.ADMIN:
                raise InsufficientPermissionsError("only admins can manage admins")

    @staticmethod
    async def _require_other_admin(uow: IUnitOfWork, organization_id: UUID) -> None:
        if await uow.organizations.count_active_admins(organization_id) <= 1:
            raise LastAdminError()
