"""Invitation API routes."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_email_dispatcher, get_invitation_service
from api.v1.schemas.invitation import (
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    CreateInvitationRequest,
    InvitationCreatedResponse,
    InvitationListResponse,
    InvitationPreview,
    InvitationResponse,
    ValidateInvitationResponse,
)
from core.config import settings
from core.exceptions import InvalidOrganizationError
from core.rate_limit import limiter
from domain.entities.invitation import build_invite_link
from domain.services.invitation_service import InvitationService
from infrastructure.email.dispatcher import EmailDispatcher, InviteEmail

logger = structlog.get_logger()

# Organization-scoped invitation routes
organization_invitations_router = APIRouter(
    prefix="/organizations/{organization_id}/invitations",
    tags=["invitations"],
)

# Invitee-facing routes (validate, accept, pending)
invitations_router = APIRouter(
    prefix="/invitations",
    tags=["invitations"],
)


def parse_organization_id(value: str | None) -> UUID | None:
    """Parse the ``org`` query parameter of an invite link."""
    if value is None or value == "":
        return None
    try:
        return UUID(value)
    except ValueError:
        raise InvalidOrganizationError(value) from None


@organization_invitations_router.post(
    "",
    response_model=InvitationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite someone to the organization",
    responses={
        201: {"description": "Invitation created"},
        400: {"description": "Role not allowed for invitations"},
        403: {"description": "Insufficient permissions, or invitee is banned"},
        404: {"description": "Organization not found"},
        409: {"description": "Duplicate invitation or already a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_invitation(
    request: Request,
    organization_id: UUID,
    body: CreateInvitationRequest,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
) -> InvitationCreatedResponse:
    """Create an invitation and email the invite link. Requires can_invite_members.

    A failed email does not undo the invitation.
    """
    invitation = await service.create(
        organization_id=organization_id,
        user_id=user.id,
        email=body.email,
        name=body.name,
        role=body.role,
        department=body.department,
        custom_message=body.custom_message,
    )
    invite_link = build_invite_link(
        settings.app_base_url, invitation.token, invitation.email, invitation.organization_id
    )

    result = await dispatcher.send_invite(
        InviteEmail(
            inviter_name=invitation.inviter_name,
            inviter_email=invitation.inviter_email,
            invitee_name=invitation.name,
            invitee_email=invitation.email,
            role=invitation.role.value,
            invite_link=invite_link,
            organization_name=await service.organization_name(organization_id),
            department=invitation.department,
            custom_message=invitation.custom_message,
            is_new_user=invitation.is_new_user,
        )
    )
    if not result.success:
        logger.warning(
            "invitation_email_failed",
            invitation_id=str(invitation.id),
            error=result.error,
        )

    return InvitationCreatedResponse(
        data=InvitationResponse.from_entity(invitation),
        invite_link=invite_link,
        email_sent=result.success,
    )


@organization_invitations_router.get(
    "",
    response_model=InvitationListResponse,
    summary="List pending invitations",
    responses={
        200: {"description": "Pending, unexpired invitations, newest first"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_pending_invitations(
    request: Request,
    organization_id: UUID,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    """List pending invitations of an organization. Requires can_invite_members."""
    invitations = await service.list_pending(organization_id, user.id)
    data = [InvitationResponse.from_entity(inv) for inv in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@organization_invitations_router.delete(
    "/{token}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke invitation",
    responses={
        204: {"description": "Invitation revoked"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Invitation not found or already processed"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def revoke_invitation(
    request: Request,
    organization_id: UUID,
    token: str,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> None:
    """Revoke a pending invitation. Requires can_invite_members."""
    await service.revoke(token=token, organization_id=organization_id, user_id=user.id)
    return None


# --- Invitee-facing routes ---


@invitations_router.get(
    "/validate",
    response_model=ValidateInvitationResponse,
    summary="Validate an invite link",
    responses={
        200: {"description": "Validation outcome (valid or a reason)"},
        400: {"description": "Malformed organization id"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def validate_invitation(
    request: Request,
    token: str = Query(..., min_length=1, max_length=128),
    email: str | None = Query(None, max_length=255),
    org: str | None = Query(None, max_length=64),
    service: InvitationService = Depends(get_invitation_service),
) -> ValidateInvitationResponse:
    """Check an invite link before sign-up or sign-in. No authentication required."""
    outcome = await service.validate(token, email, parse_organization_id(org))

    if not outcome.valid or outcome.invitation is None:
        return ValidateInvitationResponse(
            valid=False,
            reason=outcome.reason.value if outcome.reason else None,
        )

    inv = outcome.invitation
    return ValidateInvitationResponse(
        valid=True,
        invitation=InvitationPreview(
            organization_id=inv.organization_id,
            email=inv.email,
            name=inv.name,
            role=inv.role.value,
            department=inv.department,
            inviter_name=inv.inviter_name,
            is_new_user=inv.is_new_user,
            expires_at=inv.expires_at,
        ),
    )


@invitations_router.post(
    "/accept",
    response_model=AcceptInvitationResponse,
    summary="Accept invitation",
    responses={
        200: {"description": "Invitation accepted, user added to organization"},
        403: {"description": "Banned from the organization"},
        404: {"description": "Invitation not found or already processed"},
        410: {"description": "Invitation expired"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def accept_invitation(
    request: Request,
    body: AcceptInvitationRequest,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
) -> AcceptInvitationResponse:
    """Accept an invitation addressed to the signed-in user's email."""
    accepted = await service.accept(token=body.token, email=user.email, user_id=user.id)
    invitation = accepted.invitation

    if invitation.is_new_user:
        result = await dispatcher.send_welcome(user.email, user.name)
        if not result.success:
            logger.warning("welcome_email_failed", user_id=str(user.id), error=result.error)

    return AcceptInvitationResponse(
        organization_id=invitation.organization_id,
        organization_name=await service.organization_name(invitation.organization_id),
        role=invitation.role.value,
    )


@invitations_router.get(
    "/pending",
    response_model=InvitationListResponse,
    summary="Get pending invitations",
    responses={
        200: {"description": "List of pending invitations for the current user"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_pending_invitations(
    request: Request,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    """Get all pending invitations for the current user's email."""
    invitations = await service.list_for_email(user.email)
    data = [InvitationResponse.from_entity(inv) for inv in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})
