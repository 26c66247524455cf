"""Audit log domain entity and action constants."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

# Format: {entity_type}.{action}


class Actions:
    """Audit action constants using dot-notation."""

    # Organization actions
    ORGANIZATION_CREATED = "organization.created"
    ORGANIZATION_UPDATED = "organization.updated"

    # Member actions
    MEMBER_REMOVED = "member.removed"
    MEMBER_ROLE_CHANGED = "member.role_changed"
    MEMBER_BANNED = "member.banned"
    MEMBER_UNBANNED = "member.unbanned"

    # Invitation actions
    INVITATION_CREATED = "invitation.created"
    INVITATION_ACCEPTED = "invitation.accepted"
    INVITATION_REVOKED = "invitation.revoked"

    # Resource actions
    PROJECT_CREATED = "project.created"
    TEAM_CREATED = "team.created"


@dataclass
class AuditLog:
    """Domain entity for an audit log entry."""

    organization_id: UUID
    actor_id: UUID
    action: str
    entity_type: str
    entity_id: UUID
    id: UUID = field(default_factory=uuid4)
    changes: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
