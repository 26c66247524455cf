"""Organization roles and the capability table derived from them."""

from dataclasses import dataclass, fields
from enum import StrEnum
from typing import Iterable


class Role(StrEnum):
    """Role of a user inside one organization."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


@dataclass(frozen=True)
class Permissions:
    """Capabilities granted by a role. Purely role-keyed, no per-user overrides."""

    # Organization
    can_view_organization: bool = True
    can_edit_organization: bool = False
    can_delete_organization: bool = False
    can_invite_members: bool = False
    can_manage_members: bool = False
    can_ban_members: bool = False
    can_view_audit_logs: bool = False

    # Projects
    can_view_projects: bool = True
    can_create_projects: bool = False
    can_edit_projects: bool = False
    can_delete_projects: bool = False
    can_assign_tasks: bool = False
    can_view_all_projects: bool = False

    # Teams
    can_view_teams: bool = True
    can_create_teams: bool = False
    can_edit_teams: bool = False
    can_delete_teams: bool = False
    can_manage_team_members: bool = False

    # Budget
    can_view_budget: bool = False
    can_create_budget: bool = False
    can_edit_budget: bool = False
    can_delete_budget: bool = False
    can_approve_transactions: bool = False

    # Analytics
    can_view_analytics: bool = True
    can_view_advanced_analytics: bool = False
    can_export_data: bool = False

    # Sprints
    can_create_sprints: bool = True
    can_manage_sprints: bool = False
    can_view_sprint_reports: bool = True

    def as_dict(self) -> dict[str, bool]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


CAPABILITIES: frozenset[str] = frozenset(f.name for f in fields(Permissions))

_ROLE_PERMISSIONS: dict[Role, Permissions] = {
    Role.ADMIN: Permissions(
        can_edit_organization=True,
        can_delete_organization=True,
        can_invite_members=True,
        can_manage_members=True,
        can_ban_members=True,
        can_view_audit_logs=True,
        can_create_projects=True,
        can_edit_projects=True,
        can_delete_projects=True,
        can_assign_tasks=True,
        can_view_all_projects=True,
        can_create_teams=True,
        can_edit_teams=True,
        can_delete_teams=True,
        can_manage_team_members=True,
        can_view_budget=True,
        can_create_budget=True,
        can_edit_budget=True,
        can_delete_budget=True,
        can_approve_transactions=True,
        can_view_advanced_analytics=True,
        can_export_data=True,
        can_manage_sprints=True,
    ),
    Role.MANAGER: Permissions(
        can_invite_members=True,
        can_manage_members=True,
        can_create_projects=True,
        can_edit_projects=True,
        can_assign_tasks=True,
        can_view_all_projects=True,
        can_create_teams=True,
        can_edit_teams=True,
        can_manage_team_members=True,
        can_view_budget=True,
        can_create_budget=True,
        can_edit_budget=True,
        can_approve_transactions=True,
        can_view_advanced_analytics=True,
        can_export_data=True,
        can_manage_sprints=True,
    ),
    Role.EMPLOYEE: Permissions(),
}


def get_role_permissions(role: Role | str) -> Permissions:
    """Return the fixed capability record for a role."""
    return _ROLE_PERMISSIONS[Role(role)]


def roles_with(capability: str) -> frozenset[Role]:
    """Return the roles whose capability record grants ``capability``."""
    if capability not in CAPABILITIES:
        raise ValueError(f"Unknown capability: {capability}")
    return frozenset(
        role for role, perms in _ROLE_PERMISSIONS.items() if getattr(perms, capability)
    )


def allow_roles(allowed: Iterable[Role | str], role: Role | str | None) -> bool:
    """Check a caller's role against an allow-list. ``None`` is never allowed."""
    if role is None:
        return False
    return Role(role) in {Role(r) for r in allowed}
