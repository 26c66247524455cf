"""Project and team API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_resource_service
from api.v1.schemas.resource import ResourceCreate, ResourceListResponse, ResourceResponse
from core.rate_limit import limiter
from domain.entities.resource import ResourceKind
from domain.services.resource_service import ResourceService

router = APIRouter(prefix="/organizations/{organization_id}", tags=["resources"])


@router.get("/projects", response_model=ResourceListResponse, summary="List projects")
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_projects(
    request: Request,
    organization_id: UUID,
    user: CurrentUser,
    service: ResourceService = Depends(get_resource_service),
) -> ResourceListResponse:
    projects = await service.list_for_organization(organization_id, user.id, ResourceKind.PROJECT)
    data = [ResourceResponse.model_validate(p) for p in projects]
    return ResourceListResponse(data=data, meta={"total": len(data)})


@router.post(
    "/projects",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    responses={403: {"description": "Insufficient permissions"}},
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_project(
    request: Request,
    organization_id: UUID,
    body: ResourceCreate,
    user: CurrentUser,
    service: ResourceService = Depends(get_resource_service),
) -> ResourceResponse:
    """Create a project. Requires can_create_projects."""
    project = await service.create(
        organization_id, user.id, ResourceKind.PROJECT, body.name, body.description
    )
    return ResourceResponse.model_validate(project)


@router.get("/teams", response_model=ResourceListResponse, summary="List teams")
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_teams(
    request: Request,
    organization_id: UUID,
    user: CurrentUser,
    service: ResourceService = Depends(get_resource_service),
) -> ResourceListResponse:
    teams = await service.list_for_organization(organization_id, user.id, ResourceKind.TEAM)
    data = [ResourceResponse.model_validate(t) for t in teams]
    return ResourceListResponse(data=data, meta={"total": len(data)})


@router.post(
    "/teams",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create team",
    responses={403: {"description": "Insufficient permissions"}},
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_team(
    request: Request,
    organization_id: UUID,
    body: ResourceCreate,
    user: CurrentUser,
    service: ResourceService = Depends(get_resource_service),
) -> ResourceResponse:
    """Create a team. Requires can_create_teams."""
    team = await service.create(
        organization_id, user.id, ResourceKind.TEAM, body.name, body.description
    )
    return ResourceResponse.model_validate(team)
