"""Capability checks shared by the organization-scoped services."""

from uuid import UUID

import structlog

from core.exceptions import (
    InsufficientPermissionsError,
    MemberBannedError,
    NotAMemberError,
    OrganizationNotFoundError,
)
from domain.entities.organization import Membership, Organization
from domain.entities.role import allow_roles, roles_with
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


async def resolve_membership(
    uow: IUnitOfWork, organization_id: UUID, user_id: UUID
) -> Membership | None:
    """Load a membership, lifting a timed ban that has run out."""
    membership = await uow.organizations.get_membership(organization_id, user_id)
    if membership and membership.ban_lapsed:
        membership.lift_ban()
        membership = await uow.organizations.update_membership(membership)
        logger.info(
            "ban_lifted",
            organization_id=str(organization_id),
            user_id=str(user_id),
        )
    return membership


async def require_organization(uow: IUnitOfWork, organization_id: UUID) -> Organization:
    organization = await uow.organizations.get(organization_id)
    if not organization:
        raise OrganizationNotFoundError(str(organization_id))
    return organization


async def require_member(
    uow: IUnitOfWork, organization_id: UUID, user_id: UUID
) -> Membership:
    """Return the caller's active membership or raise."""
    membership = await resolve_membership(uow, organization_id, user_id)
    if membership and membership.banned:
        raise MemberBannedError(str(organization_id))
    if not membership or not membership.is_active:
        raise NotAMemberError(str(organization_id))
    return membership


def require_capability(membership: Membership, capability: str) -> None:
    """Gate on a capability; the role allow-list is derived from the capability table."""
    if not allow_roles(roles_with(capability), membership.role):
        raise InsufficientPermissionsError(capability)


async def require_member_with(
    uow: IUnitOfWork, organization_id: UUID, user_id: UUID, capability: str
) -> Membership:
    membership = await require_member(uow, organization_id, user_id)
    require_capability(membership, capability)
    return membership
