"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.audit import router as audit_router
from api.v1.routes.invitations import invitations_router, organization_invitations_router
from api.v1.routes.members import router as members_router
from api.v1.routes.organizations import router as organizations_router
from api.v1.routes.resources import router as resources_router
from api.v1.routes.verification import router as verification_router

router = APIRouter()
router.include_router(invitations_router)
router.include_router(organizations_router)
router.include_router(organization_invitations_router)
router.include_router(members_router)
router.include_router(resources_router)
router.include_router(audit_router)
router.include_router(verification_router)
