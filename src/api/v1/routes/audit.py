"""Audit log API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_audit_service
from api.v1.schemas.audit import AuditLogListResponse, AuditLogResponse
from core.rate_limit import limiter
from domain.services.audit_service import AuditService

router = APIRouter(
    prefix="/organizations/{organization_id}/audit-logs",
    tags=["audit"],
)


@router.get(
    "",
    response_model=AuditLogListResponse,
    summary="Get organization audit trail",
    responses={
        403: {"description": "Insufficient permissions"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_audit_logs(
    request: Request,
    organization_id: UUID,
    user: CurrentUser,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: AuditService = Depends(get_audit_service),
) -> AuditLogListResponse:
    """Get the audit trail of an organization, newest first. Requires can_view_audit_logs."""
    entries = await service.list_for_organization(
        organization_id, user.id, limit=limit, offset=offset
    )
    return AuditLogListResponse(
        data=[AuditLogResponse.model_validate(e) for e in entries],
        meta={"limit": limit, "offset": offset, "count": len(entries)},
    )
