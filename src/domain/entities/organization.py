"""Organization (tenant) and membership domain entities."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4

from domain.entities.role import Role

# Informational permission list stored on the creator's association
CREATOR_PERMISSIONS = ["manage_organization", "manage_users", "manage_teams", "manage_projects"]


def default_settings() -> dict[str, Any]:
    return {
        "allow_user_registration": False,
        "require_email_verification": True,
        "default_user_role": Role.EMPLOYEE.value,
        "working_days": [1, 2, 3, 4, 5],
        "working_hours": {"start": "09:00", "end": "17:00"},
        "date_format": "MM/DD/YYYY",
        "time_format": "12h",
        "currency": "USD",
        "language": "en",
    }


def default_subscription() -> dict[str, Any]:
    return {"plan": "free", "status": "active", "max_users": 5, "features": []}


@dataclass
class Organization:
    """Domain entity for an Organization."""

    name: str
    contact_email: str
    created_by: UUID
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    settings: dict[str, Any] = field(default_factory=default_settings)
    subscription: dict[str, Any] = field(default_factory=default_subscription)
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at


class BanDuration(StrEnum):
    """Supported ban lengths."""

    ONE_HOUR = "1hour"
    ONE_DAY = "24hours"
    ONE_WEEK = "7days"
    ONE_MONTH = "30days"
    LIFETIME = "lifetime"


_BAN_DELTAS = {
    BanDuration.ONE_HOUR: timedelta(hours=1),
    BanDuration.ONE_DAY: timedelta(hours=24),
    BanDuration.ONE_WEEK: timedelta(days=7),
    BanDuration.ONE_MONTH: timedelta(days=30),
}


def ban_expiry(duration: BanDuration, now: datetime | None = None) -> datetime | None:
    """Absolute end of a ban, or None for a lifetime ban."""
    delta = _BAN_DELTAS.get(duration)
    if delta is None:
        return None
    return (now or datetime.utcnow()) + delta


@dataclass
class Membership:
    """Association of a user with an organization.

    A membership only counts when ``is_active`` is true. Ban state is tracked
    separately and a ban also clears ``is_active``.
    """

    organization_id: UUID
    user_id: UUID
    role: Role = Role.EMPLOYEE
    id: UUID = field(default_factory=uuid4)
    is_active: bool = True
    joined_at: datetime = field(default_factory=datetime.utcnow)
    permissions: list[str] = field(default_factory=list)
    banned: bool = False
    ban_reason: str | None = None
    ban_expires_at: datetime | None = None
    banned_by: UUID | None = None
    banned_at: datetime | None = None

    @property
    def ban_lapsed(self) -> bool:
        """True when a timed ban has run out and should be lifted."""
        return (
            self.banned
            and self.ban_expires_at is not None
            and datetime.utcnow() > self.ban_expires_at
        )

    def ban(
        self,
        banned_by: UUID,
        reason: str,
        expires_at: datetime | None,
    ) -> None:
        self.banned = True
        self.banned_at = datetime.utcnow()
        self.banned_by = banned_by
        self.ban_reason = reason
        self.ban_expires_at = expires_at
        self.is_active = False

    def lift_ban(self) -> None:
        self.banned = False
        self.banned_at = None
        self.banned_by = None
        self.ban_reason = None
        self.ban_expires_at = None
        self.is_active = True


@dataclass
class MemberView:
    """A membership joined with the member's identity, for listings."""

    membership: Membership
    email: str
    name: str
