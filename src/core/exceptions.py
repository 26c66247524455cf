"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    MEMBER_BANNED = "MEMBER_BANNED"

    # Not found errors (404)
    ORGANIZATION_NOT_FOUND = "ORGANIZATION_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_ORGANIZATION = "INVALID_ORGANIZATION"
    LAST_ADMIN = "LAST_ADMIN"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"

    # Invitation errors
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"
    INVITATION_EXPIRED = "INVITATION_EXPIRED"
    DUPLICATE_INVITATION = "DUPLICATE_INVITATION"

    # Conflict errors (409)
    ALREADY_A_MEMBER = "ALREADY_A_MEMBER"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TOO_MANY_ATTEMPTS = "TOO_MANY_ATTEMPTS"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=403,
        )


class ValidationFailedError(AppException):
    """Input was well-formed but violates a business rule."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.VALIDATION_FAILED,
            message=message,
            status_code=400,
            details=details,
        )


class OrganizationNotFoundError(AppException):
    """Organization not found."""

    def __init__(self, organization_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ORGANIZATION_NOT_FOUND,
            message=f"Organization not found: {organization_id}",
            status_code=404,
            details={"organization_id": organization_id},
        )


class UserNotFoundError(AppException):
    """User account not found."""

    def __init__(self, identifier: str) -> None:
        super().__init__(
            error_code=ErrorCode.USER_NOT_FOUND,
            message="User not found",
            status_code=404,
            details={"user": identifier},
        )


class MemberNotFoundError(AppException):
    """Target user has no association with the organization."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MEMBER_NOT_FOUND,
            message="User is not a member of this organization",
            status_code=404,
            details={"user_id": user_id},
        )


class NotAMemberError(AppException):
    """Caller is not an active member of the organization."""

    def __init__(self, organization_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_A_MEMBER,
            message="You are not a member of this organization",
            status_code=403,
            details={"organization_id": organization_id},
        )


class InsufficientPermissionsError(AppException):
    """Caller's role does not grant the required capability."""

    def __init__(self, capability: str) -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message=f"Insufficient permissions: {capability}",
            status_code=403,
            details={"capability": capability},
        )


class MemberBannedError(AppException):
    """User is banned from the organization."""

    def __init__(self, organization_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MEMBER_BANNED,
            message="This user is banned from the organization",
            status_code=403,
            details={"organization_id": organization_id},
        )


class LastAdminError(AppException):
    """Cannot remove, ban or demote the last active admin."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.LAST_ADMIN,
            message="Cannot remove or demote the last admin of an organization",
            status_code=400,
        )


class AlreadyAMemberError(AppException):
    """Invitee is already an active member of the organization."""

    def __init__(self, email: str) -> None:
        super().__init__(
            error_code=ErrorCode.ALREADY_A_MEMBER,
            message="This user is already a member of your organization",
            status_code=409,
            details={"email": email},
        )


class InvalidOrganizationError(AppException):
    """Invitation does not belong to the given organization."""

    def __init__(self, organization_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_ORGANIZATION,
            message="Invalid organization",
            status_code=400,
            details={"organization_id": organization_id},
        )


class InvitationNotFoundError(AppException):
    """No pending invitation matches; it may be unknown or already processed."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_NOT_FOUND,
            message="Invitation not found or already processed",
            status_code=404,
        )


class InvitationExpiredError(AppException):
    """Invitation has expired."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_EXPIRED,
            message="Invitation has expired",
            status_code=410,
        )


class DuplicateInvitationError(AppException):
    """A pending invitation already exists for this email and organization."""

    def __init__(self, email: str) -> None:
        super().__init__(
            error_code=ErrorCode.DUPLICATE_INVITATION,
            message="A pending invitation already exists for this email in this organization",
            status_code=409,
            details={"email": email},
        )


class VerificationFailedError(AppException):
    """Email verification code could not be accepted."""

    def __init__(self, message: str) -> None:
        super().__init__(
            error_code=ErrorCode.VERIFICATION_FAILED,
            message=message,
            status_code=400,
        )


class TooManyAttemptsError(AppException):
    """Verification requested or attempted too often."""

    def __init__(self, message: str) -> None:
        super().__init__(
            error_code=ErrorCode.TOO_MANY_ATTEMPTS,
            message=message,
            status_code=429,
        )
