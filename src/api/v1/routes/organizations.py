"""Organization API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_membership_service, get_organization_service
from api.v1.schemas.organization import (
    OrganizationCreate,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdate,
    SwitchOrganizationRequest,
    SwitchOrganizationResponse,
)
from core.rate_limit import limiter
from domain.entities.organization import Membership, Organization
from domain.entities.role import Role
from domain.services.membership_service import MembershipService
from domain.services.organization_service import OrganizationService

router = APIRouter(prefix="/organizations", tags=["organizations"])


def _to_response(organization: Organization, role: Role | None = None) -> OrganizationResponse:
    return OrganizationResponse(
        id=organization.id,
        name=organization.name,
        description=organization.description,
        contact_email=organization.contact_email,
        settings=organization.settings,
        subscription=organization.subscription,
        created_by=organization.created_by,
        is_active=organization.is_active,
        role=role.value if role else None,
        created_at=organization.created_at,
        updated_at=organization.updated_at,
    )


@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create organization",
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_organization(
    request: Request,
    body: OrganizationCreate,
    user: CurrentUser,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    """Create an organization. The caller becomes its admin."""
    organization = await service.create(
        user_id=user.id,
        name=body.name,
        contact_email=body.contact_email,
        description=body.description,
        settings=body.settings,
    )
    return _to_response(organization, Role.ADMIN)


@router.get(
    "",
    response_model=OrganizationListResponse,
    summary="List my organizations",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_organizations(
    request: Request,
    user: CurrentUser,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationListResponse:
    """List organizations the caller actively belongs to, with the caller's role."""
    rows: list[tuple[Organization, Membership]] = await service.list_for_user(user.id)
    data = [_to_response(org, membership.role) for org, membership in rows]
    return OrganizationListResponse(
        data=data,
        meta={
            "total": len(data),
            "current_organization_id": (
                str(user.current_organization_id) if user.current_organization_id else None
            ),
        },
    )


@router.post(
    "/switch",
    response_model=SwitchOrganizationResponse,
    summary="Switch current organization",
    responses={
        403: {"description": "Not an active member"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def switch_organization(
    request: Request,
    body: SwitchOrganizationRequest,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> SwitchOrganizationResponse:
    """Make another organization the caller's current one."""
    membership, permissions = await service.switch_organization(user.id, body.organization_id)
    return SwitchOrganizationResponse(
        organization_id=membership.organization_id,
        role=membership.role.value,
        permissions=permissions.as_dict(),
    )


@router.get(
    "/{organization_id}",
    response_model=OrganizationResponse,
    summary="Get organization",
    responses={
        403: {"description": "Not a member"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_organization(
    request: Request,
    organization_id: UUID,
    user: CurrentUser,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    """Get an organization. Requires membership."""
    organization, membership = await service.get(organization_id, user.id)
    return _to_response(organization, membership.role)


@router.patch(
    "/{organization_id}",
    response_model=OrganizationResponse,
    summary="Update organization",
    responses={
        403: {"description": "Insufficient permissions"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_organization(
    request: Request,
    organization_id: UUID,
    body: OrganizationUpdate,
    user: CurrentUser,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    """Update an organization. Requires can_edit_organization."""
    organization = await service.update(
        organization_id,
        user.id,
        name=body.name,
        description=body.description,
        contact_email=body.contact_email,
        settings=body.settings,
    )
    return _to_response(organization)


@router.delete(
    "/{organization_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete organization",
    responses={
        403: {"description": "Insufficient permissions"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def delete_organization(
    request: Request,
    organization_id: UUID,
    user: CurrentUser,
    service: OrganizationService = Depends(get_organization_service),
) -> None:
    """Delete an organization. Requires can_delete_organization."""
    await service.delete(organization_id, user.id)
    return None
