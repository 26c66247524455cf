"""Invitation service layer: the lifecycle of an organization invitation."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    AlreadyAMemberError,
    DuplicateInvitationError,
    InvitationExpiredError,
    InvitationNotFoundError,
    MemberBannedError,
    UserNotFoundError,
    ValidationFailedError,
)
from domain.entities.audit import Actions
from domain.entities.invitation import (
    CUSTOM_MESSAGE_MAX_LENGTH,
    INVITABLE_ROLES,
    INVITATION_EXPIRY_HOURS,
    Invitation,
    InvitationStatus,
    normalize_email,
)
from domain.entities.organization import Membership
from domain.entities.role import Role
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import (
    require_member_with,
    require_organization,
    resolve_membership,
)
from domain.services.audit_service import AuditService
from domain.services.membership_service import MembershipService

logger = structlog.get_logger()


class ValidationReason(StrEnum):
    INVALID_OR_EXPIRED = "invalid-or-expired"
    WRONG_ORGANIZATION = "wrong-organization"
    EXPIRED = "expired"


@dataclass
class InvitationValidation:
    """Outcome of checking a token before acceptance."""

    valid: bool
    reason: ValidationReason | None = None
    invitation: Invitation | None = None


@dataclass
class AcceptedInvitation:
    invitation: Invitation
    membership: Membership | None = None


class InvitationService:
    """Service layer for organization invitation business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        membership_service: Optional["MembershipService"] = None,
        audit_service: Optional["AuditService"] = None,
        expiry_hours: int = INVITATION_EXPIRY_HOURS,
    ) -> None:
        self._uow_factory = uow_factory
        self._membership = membership_service or MembershipService(uow_factory)
        self._audit = audit_service
        self._expiry_hours = expiry_hours

    async def create(
        self,
        organization_id: UUID,
        user_id: UUID,
        email: str,
        name: str,
        role: Role = Role.EMPLOYEE,
        department: str | None = None,
        custom_message: str | None = None,
    ) -> Invitation:
        """Create a pending invitation for an email address.

        Args:
            organization_id: The organization to invite to.
            user_id: The inviting user (needs can_invite_members).
            email: The invitee's email address.
            name: The invitee's display name.
            role: The role granted on acceptance (employee only).
            department: Optional department label.
            custom_message: Optional note shown in the invitation email.

        Returns:
            The created invitation, including its token.

        Raises:
            OrganizationNotFoundError: If the organization does not exist.
            InsufficientPermissionsError: If the inviter may not invite.
            ValidationFailedError: If the role or message is not allowed.
            AlreadyAMemberError: If the email belongs to an active member.
            MemberBannedError: If the email belongs to a banned member.
            DuplicateInvitationError: If a live pending invitation exists.
        """
        if role not in INVITABLE_ROLES:
            raise ValidationFailedError(
                "Only employee invitations are allowed",
                details={"role": str(role)},
            )
        if custom_message and len(custom_message) > CUSTOM_MESSAGE_MAX_LENGTH:
            raise ValidationFailedError(
                f"Custom message must be at most {CUSTOM_MESSAGE_MAX_LENGTH} characters"
            )

        email = normalize_email(email)

        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            await require_member_with(uow, organization_id, user_id, "can_invite_members")

            inviter = await uow.users.get(user_id)
            if not inviter:
                raise UserNotFoundError(str(user_id))

            invitee = await uow.users.get_by_email(email)
            if invitee:
                membership = await resolve_membership(uow, organization_id, invitee.id)
                if membership and membership.banned:
                    raise MemberBannedError(str(organization_id))
                if membership and membership.is_active:
                    raise AlreadyAMemberError(email)

            await uow.invitations.expire_stale_for(organization_id, email)
            if await uow.invitations.get_pending_for_organization_email(organization_id, email):
                raise DuplicateInvitationError(email)

            invitation = Invitation(
                organization_id=organization_id,
                email=email,
                name=name.strip(),
                inviter_id=inviter.id,
                inviter_name=inviter.name,
                inviter_email=inviter.email,
                role=role,
                department=department,
                custom_message=custom_message,
                is_new_user=invitee is None,
                expires_at=datetime.utcnow() + timedelta(hours=self._expiry_hours),
            )

            try:
                created = await uow.invitations.create(invitation)
            except IntegrityError as exc:
                await uow.rollback()
                orig = str(exc.orig).lower() if exc.orig else ""
                if "unique" in orig or "duplicate" in orig:
                    raise DuplicateInvitationError(email) from exc
                raise

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    organization_id=organization_id,
                    actor_id=user_id,
                    action=Actions.INVITATION_CREATED,
                    entity_type="invitation",
                    entity_id=created.id,
                    metadata={"email": email, "role": role.value},
                )

            await uow.commit()

        logger.info(
            "invitation_created",
            invitation_id=str(created.id),
            organization_id=str(organization_id),
            is_new_user=created.is_new_user,
        )
        return created

    async def validate(
        self,
        token: str,
        email: str | None = None,
        organization_id: UUID | None = None,
    ) -> InvitationValidation:
        """Check whether a token can still be accepted.

        Business outcomes are reported in the result, never raised. A pending
        invitation found past its deadline is marked expired on the way.

        The organization is compared before the deadline: an overdue invitation
        checked against another organization reports ``wrong-organization`` and
        stays pending.
        """
        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_token(token)

            if (
                invitation is None
                or invitation.status != InvitationStatus.PENDING
                or (email is not None and normalize_email(email) != invitation.email)
            ):
                return InvitationValidation(
                    valid=False, reason=ValidationReason.INVALID_OR_EXPIRED
                )

            if organization_id is not None and invitation.organization_id != organization_id:
                return InvitationValidation(
                    valid=False, reason=ValidationReason.WRONG_ORGANIZATION
                )

            if invitation.is_expired:
                await uow.invitations.transition(
                    invitation.id, InvitationStatus.PENDING, InvitationStatus.EXPIRED
                )
                await uow.commit()
                invitation.status = InvitationStatus.EXPIRED
                return InvitationValidation(
                    valid=False, reason=ValidationReason.EXPIRED, invitation=invitation
                )

            return InvitationValidation(valid=True, invitation=invitation)

    async def accept(
        self,
        token: str,
        email: str,
        user_id: UUID | None = None,
    ) -> AcceptedInvitation:
        """Accept a pending invitation.

        The pending-to-accepted step is a conditional update, so of two
        concurrent accepts exactly one succeeds. When ``user_id`` is given the
        user joins the organization in the same transaction.

        Raises:
            InvitationNotFoundError: No pending invitation for token and email,
                or it was processed concurrently.
            InvitationExpiredError: The invitation is past its deadline.
            MemberBannedError: The user is banned from the organization.
        """
        email = normalize_email(email)

        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_pending_by_token_email(token, email)
            if not invitation:
                raise InvitationNotFoundError()

            if invitation.is_expired:
                await uow.invitations.transition(
                    invitation.id, InvitationStatus.PENDING, InvitationStatus.EXPIRED
                )
                await uow.commit()
                raise InvitationExpiredError()

            accepted = await uow.invitations.transition(
                invitation.id, InvitationStatus.PENDING, InvitationStatus.ACCEPTED
            )
            if accepted is None:
                raise InvitationNotFoundError()

            membership = None
            if user_id is not None:
                membership = await self._membership.apply_invitation(uow, user_id, accepted)

                if self._audit:
                    await self._audit.log(
                        uow=uow,
                        organization_id=accepted.organization_id,
                        actor_id=user_id,
                        action=Actions.INVITATION_ACCEPTED,
                        entity_type="invitation",
                        entity_id=accepted.id,
                        metadata={"role": accepted.role.value},
                    )

            await uow.commit()

        logger.info(
            "invitation_accepted",
            invitation_id=str(accepted.id),
            organization_id=str(accepted.organization_id),
            user_id=str(user_id) if user_id else None,
        )
        return AcceptedInvitation(invitation=accepted, membership=membership)

    async def revoke(self, token: str, organization_id: UUID, user_id: UUID) -> Invitation:
        """Revoke a pending invitation of an organization.

        Raises:
            InsufficientPermissionsError: If the caller may not invite.
            InvitationNotFoundError: Unknown token, another organization's
                invitation, or no longer pending.
        """
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            await require_member_with(uow, organization_id, user_id, "can_invite_members")

            invitation = await uow.invitations.get_by_token(token)
            if not invitation or invitation.organization_id != organization_id:
                raise InvitationNotFoundError()

            revoked = await uow.invitations.transition(
                invitation.id, InvitationStatus.PENDING, InvitationStatus.REVOKED
            )
            if revoked is None:
                raise InvitationNotFoundError()

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    organization_id=organization_id,
                    actor_id=user_id,
                    action=Actions.INVITATION_REVOKED,
                    entity_type="invitation",
                    entity_id=revoked.id,
                    metadata={"email": revoked.email},
                )

            await uow.commit()
            return revoked

    async def list_pending(self, organization_id: UUID, user_id: UUID) -> list[Invitation]:
        """Pending, unexpired invitations of an organization, newest first."""
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            await require_member_with(uow, organization_id, user_id, "can_invite_members")

            return await uow.invitations.get_pending_for_organization(  # type: ignore[no-any-return]
                organization_id
            )

    async def list_for_email(self, email: str) -> list[Invitation]:
        """Pending invitations addressed to an email, for the dashboard banner."""
        async with self._uow_factory() as uow:
            return await uow.invitations.get_pending_for_email(  # type: ignore[no-any-return]
                normalize_email(email)
            )

    async def sweep_expired(self) -> int:
        """Mark every pending invitation past its deadline as expired."""
        async with self._uow_factory() as uow:
            count = await uow.invitations.expire_old_invitations()
            await uow.commit()

        if count:
            logger.info("invitations_expired", count=count)
        return count  # type: ignore[no-any-return]

    async def organization_name(self, organization_id: UUID) -> str:
        """Name of an organization, for outgoing emails."""
        async with self._uow_factory() as uow:
            organization = await require_organization(uow, organization_id)
            return organization.name
