"""Dependency injection factories for API v1."""

from functools import lru_cache

from api.dependencies.services import get_uow_factory, get_user_service
from core.config import settings
from domain.services.audit_service import AuditService
from domain.services.invitation_service import InvitationService
from domain.services.membership_service import MembershipService
from domain.services.organization_service import OrganizationService
from domain.services.resource_service import ResourceService
from domain.services.verification_service import VerificationService
from infrastructure.email.dispatcher import EmailDispatcher


@lru_cache
def get_audit_service() -> AuditService:
    """Get Audit service instance."""
    return AuditService(get_uow_factory())


@lru_cache
def get_membership_service() -> MembershipService:
    """Get Membership service instance."""
    return MembershipService(get_uow_factory(), audit_service=get_audit_service())


@lru_cache
def get_invitation_service() -> InvitationService:
    """Get Invitation service instance."""
    return InvitationService(
        get_uow_factory(),
        membership_service=get_membership_service(),
        audit_service=get_audit_service(),
        expiry_hours=settings.invitation_expiry_hours,
    )


@lru_cache
def get_organization_service() -> OrganizationService:
    """Get Organization service instance."""
    return OrganizationService(get_uow_factory(), audit_service=get_audit_service())


@lru_cache
def get_resource_service() -> ResourceService:
    """Get project/team service instance."""
    return ResourceService(get_uow_factory(), audit_service=get_audit_service())


@lru_cache
def get_verification_service() -> VerificationService:
    """Get email verification service instance."""
    return VerificationService(
        get_uow_factory(),
        ttl_minutes=settings.otp_ttl_minutes,
        resend_seconds=settings.otp_resend_seconds,
        max_attempts=settings.otp_max_attempts,
    )


@lru_cache
def get_email_dispatcher() -> EmailDispatcher:
    """Get the outgoing email dispatcher."""
    return EmailDispatcher(settings)
