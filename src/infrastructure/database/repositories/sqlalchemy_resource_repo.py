"""SQLAlchemy implementation of the project/team repository."""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.resource import Resource, ResourceKind
from infrastructure.database.models import ProjectModel, TeamModel

_MODELS: dict[ResourceKind, type[ProjectModel] | type[TeamModel]] = {
    ResourceKind.PROJECT: ProjectModel,
    ResourceKind.TEAM: TeamModel,
}


class SQLAlchemyResourceRepository:
    """SQLAlchemy implementation of IResourceRepository over projects and teams."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, resource: Resource) -> Resource:
        """Create a new project or team."""
        model = _MODELS[resource.kind](
            id=resource.id,
            organization_id=resource.organization_id,
            name=resource.name,
            description=resource.description,
            is_archived=resource.is_archived,
            created_by=resource.created_by,
            created_at=resource.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model, resource.kind)

    async def get_for_organization(
        self, organization_id: UUID, kind: ResourceKind
    ) -> list[Resource]:
        """Get non-archived resources of one kind for an organization."""
        model_cls = _MODELS[kind]
        stmt = (
            select(model_cls)
            .where(
                model_cls.organization_id == organization_id,
                model_cls.is_archived.is_(False),
            )
            .order_by(model_cls.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model, kind) for model in result.scalars()]

    async def archive_for_organization(self, organization_id: UUID) -> int:
        """Archive every project and team of an organization."""
        archived = 0
        for model_cls in _MODELS.values():
            stmt = (
                update(model_cls)
                .where(
                    model_cls.organization_id == organization_id,
                    model_cls.is_archived.is_(False),
                )
                .values(is_archived=True)
            )
            result = await self._session.execute(stmt)
            archived += result.rowcount  # type: ignore[attr-defined]
        await self._session.flush()
        return archived

    def _to_entity(self, model: ProjectModel | TeamModel, kind: ResourceKind) -> Resource:
        """Convert ORM model to domain entity."""
        return Resource(
            id=model.id,
            organization_id=model.organization_id,
            kind=kind,
            name=model.name,
            description=model.description,
            is_archived=model.is_archived,
            created_by=model.created_by,
            created_at=model.created_at,
        )
