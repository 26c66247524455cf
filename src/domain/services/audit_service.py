"""Audit service layer for recording and querying organization events."""

from collections.abc import Callable
from typing import Any
from uuid import UUID

from domain.entities.audit import AuditLog
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import require_member_with, require_organization


class AuditService:
    """Service layer for audit logging and retrieval."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def log(
        self,
        uow: IUnitOfWork,
        organization_id: UUID,
        actor_id: UUID,
        action: str,
        entity_type: str,
        entity_id: UUID,
        changes: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Record an audit entry within an existing UoW transaction.

        Args:
            uow: The active Unit of Work (caller manages commit).
            organization_id: The organization where the event occurred.
            actor_id: The user who performed the action.
            action: The action string (use Actions constants).
            entity_type: The type of entity affected.
            entity_id: The ID of the entity affected.
            changes: Optional dict of field-level changes {field: {old, new}}.
            metadata: Optional additional metadata.

        Returns:
            The created AuditLog entry.
        """
        entry = AuditLog(
            organization_id=organization_id,
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            changes=changes,
            metadata=metadata,
        )
        return await uow.audit_logs.create(entry)

    async def list_for_organization(
        self,
        organization_id: UUID,
        user_id: UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditLog]:
        """Get the audit trail of an organization, newest first. Admin only."""
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            await require_member_with(uow, organization_id, user_id, "can_view_audit_logs")

            return await uow.audit_logs.get_for_organization(  # type: ignore[no-any-return]
                organization_id, limit=limit, offset=offset
            )

    @staticmethod
    def compute_diff(
        old_dict: dict[str, Any], new_dict: dict[str, Any]
    ) -> dict[str, dict[str, Any]]:
        """Return {field: {"old": .., "new": ..}} for every field that changed."""
        diff: dict[str, dict[str, Any]] = {}
        for key in set(old_dict) | set(new_dict):
            old_val = old_dict.get(key)
            new_val = new_dict.get(key)
            if old_val != new_val:
                diff[key] = {"old": old_val, "new": new_val}
        return diff
