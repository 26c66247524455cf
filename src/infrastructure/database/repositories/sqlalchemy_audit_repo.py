"""SQLAlchemy implementation of Audit Log repository."""

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.audit import AuditLog
from infrastructure.database.models import AuditLogModel


class SQLAlchemyAuditRepository:
    """SQLAlchemy implementation of IAuditRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, entry: AuditLog) -> AuditLog:
        """Create a new audit log entry."""
        model = self._to_model(entry)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get_for_organization(
        self,
        organization_id: UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditLog]:
        """Get audit entries for an organization, ordered by newest first."""
        stmt = (
            select(AuditLogModel)
            .where(AuditLogModel.organization_id == organization_id)
            .order_by(AuditLogModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    def _to_entity(self, model: AuditLogModel) -> AuditLog:
        """Convert ORM model to domain entity."""
        return AuditLog(
            id=model.id,
            organization_id=model.organization_id,
            actor_id=model.actor_id,
            action=model.action,
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            changes=model.changes,
            metadata=model.metadata_,
            created_at=model.created_at,
        )

    def _to_model(self, entity: AuditLog) -> AuditLogModel:
        """Convert domain entity to ORM model."""
        return AuditLogModel(
            id=entity.id,
            organization_id=entity.organization_id,
            actor_id=entity.actor_id,
            action=entity.action,
            entity_type=entity.entity_type,
            entity_id=entity.entity_id,
            changes=entity.changes,
            metadata_=entity.metadata,
            created_at=entity.created_at,
        )
