"""Invitation domain entity and invite-link helpers."""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from urllib.parse import parse_qs, quote, urlparse
from uuid import UUID, uuid4

from domain.entities.role import Role


class InvitationStatus(StrEnum):
    """Status of an organization invitation. Only PENDING is non-terminal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REVOKED = "revoked"


# Default invitation expiry: 24 hours
INVITATION_EXPIRY_HOURS = 24

# Self-service invitations may only grant this role
INVITABLE_ROLES = frozenset({Role.EMPLOYEE})

CUSTOM_MESSAGE_MAX_LENGTH = 500


def generate_invitation_token() -> str:
    """Return a 64-character hex token from the OS CSPRNG."""
    return secrets.token_hex(32)


@dataclass
class Invitation:
    """Domain entity for an organization invitation.

    Inviter name and email are captured when the invitation is sent and are
    not re-resolved if the inviter's profile changes later.
    """

    organization_id: UUID
    email: str
    name: str
    inviter_id: UUID
    inviter_name: str
    inviter_email: str
    role: Role = Role.EMPLOYEE
    token: str = field(default_factory=generate_invitation_token)
    id: UUID = field(default_factory=uuid4)
    department: str | None = None
    custom_message: str | None = None
    is_new_user: bool = True
    status: InvitationStatus = InvitationStatus.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: datetime = field(
        default_factory=lambda: datetime.utcnow() + timedelta(hours=INVITATION_EXPIRY_HOURS)
    )
    accepted_at: datetime | None = None

    def __post_init__(self) -> None:
        self.email = normalize_email(self.email)

    @property
    def is_expired(self) -> bool:
        """Check if the invitation deadline has passed."""
        return datetime.utcnow() > self.expires_at

    @property
    def is_pending(self) -> bool:
        """Check if the invitation is still pending and not expired."""
        return self.status == InvitationStatus.PENDING and not self.is_expired


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class InviteLink:
    """The three values carried by an invite link."""

    token: str
    email: str
    organization_id: str


def build_invite_link(base_url: str, token: str, email: str, organization_id: UUID | str) -> str:
    """Build ``<base>/invite?token=..&email=..&org=..``."""
    return (
        f"{base_url.rstrip('/')}/invite?token={token}"
        f"&email={quote(email, safe='')}&org={organization_id}"
    )


def parse_invite_link(link: str) -> InviteLink | None:
    """Extract token, email and organization from an invite link.

    Returns None when the link is malformed or any parameter is missing.
    """
    try:
        query = parse_qs(urlparse(link).query)
    except ValueError:
        return None

    token = query.get("token", [""])[0]
    email = query.get("email", [""])[0]
    organization_id = query.get("org", [""])[0]
    if not token or not email or not organization_id:
        return None
    return InviteLink(token=token, email=email, organization_id=organization_id)
