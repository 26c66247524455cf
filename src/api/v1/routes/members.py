"""Organization member API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_membership_service
from api.v1.schemas.member import (
    BanMemberRequest,
    MemberListResponse,
    MemberResponse,
    UpdateMemberRoleRequest,
)
from core.rate_limit import limiter
from domain.services.membership_service import MembershipService

router = APIRouter(
    prefix="/organizations/{organization_id}/members",
    tags=["members"],
)


@router.get(
    "",
    response_model=MemberListResponse,
    summary="List members",
    responses={
        403: {"description": "Not a member"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_members(
    request: Request,
    organization_id: UUID,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> MemberListResponse:
    """List active and banned members. Requires membership."""
    members = await service.list_members(organization_id, user.id)
    data = [MemberResponse.from_view(view) for view in members]
    return MemberListResponse(data=data, meta={"total": len(data)})


@router.patch(
    "/{member_id}",
    response_model=MemberResponse,
    summary="Change a member's role",
    responses={
        400: {"description": "Would leave the organization without an admin"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_member_role(
    request: Request,
    organization_id: UUID,
    member_id: UUID,
    body: UpdateMemberRoleRequest,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> MemberResponse:
    """Change a member's role. Requires can_manage_members."""
    membership = await service.update_member_role(
        organization_id, user.id, member_id, body.role
    )
    return MemberResponse.from_membership(membership)


@router.delete(
    "/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a member",
    responses={
        400: {"description": "Cannot remove yourself or the last admin"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_member(
    request: Request,
    organization_id: UUID,
    member_id: UUID,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> None:
    """Deactivate a membership. Requires can_manage_members."""
    await service.remove_member(organization_id, user.id, member_id)
    return None


@router.post(
    "/{member_id}/ban",
    response_model=MemberResponse,
    summary="Ban a member",
    responses={
        400: {"description": "Cannot ban yourself or the last admin"},
        403: {"description": "Admins only"},
        404: {"description": "Member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def ban_member(
    request: Request,
    organization_id: UUID,
    member_id: UUID,
    body: BanMemberRequest,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> MemberResponse:
    """Ban a member for a fixed duration or for good. Requires can_ban_members."""
    membership = await service.ban_member(
        organization_id, user.id, member_id, reason=body.reason, duration=body.duration
    )
    return MemberResponse.from_membership(membership)


@router.delete(
    "/{member_id}/ban",
    response_model=MemberResponse,
    summary="Lift a ban",
    responses={
        400: {"description": "Member is not banned"},
        403: {"description": "Admins only"},
        404: {"description": "Member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def unban_member(
    request: Request,
    organization_id: UUID,
    member_id: UUID,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> MemberResponse:
    """Lift a ban and reactivate the membership. Requires can_ban_members."""
    membership = await service.unban_member(organization_id, user.id, member_id)
    return MemberResponse.from_membership(membership)
