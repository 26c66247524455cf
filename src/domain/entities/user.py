"""User account domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4


class UserStatus(StrEnum):
    ACTIVE = "active"
    PENDING = "pending"


@dataclass
class EmailVerification:
    """Outstanding email verification code (hash only)."""

    otp_hash: str | None = None
    expires_at: datetime | None = None
    attempts: int = 0
    last_sent_at: datetime | None = None


@dataclass
class User:
    """Domain entity for a user account.

    Identity is owned by the external credentials provider; this record is
    kept in sync from token claims.
    """

    email: str
    name: str
    id: UUID = field(default_factory=uuid4)
    status: UserStatus = UserStatus.ACTIVE
    is_active: bool = True
    current_organization_id: UUID | None = None
    email_verified: bool = False
    verification: EmailVerification = field(default_factory=EmailVerification)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
