"""Projects and teams owned by an organization."""

from collections.abc import Callable
from typing import Optional
from uuid import UUID

from domain.entities.audit import Actions
from domain.entities.resource import Resource, ResourceKind
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access import require_member, require_member_with, require_organization
from domain.services.audit_service import AuditService

_CREATE_CAPABILITY = {
    ResourceKind.PROJECT: "can_create_projects",
    ResourceKind.TEAM: "can_create_teams",
}

_CREATED_ACTION = {
    ResourceKind.PROJECT: Actions.PROJECT_CREATED,
    ResourceKind.TEAM: Actions.TEAM_CREATED,
}


class ResourceService:
    """Service layer for projects and teams."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        audit_service: Optional["AuditService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._audit = audit_service

    async def create(
        self,
        organization_id: UUID,
        user_id: UUID,
        kind: ResourceKind,
        name: str,
        description: str | None = None,
    ) -> Resource:
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            await require_member_with(uow, organization_id, user_id, _CREATE_CAPABILITY[kind])

            created = await uow.resources.create(
                Resource(
                    organization_id=organization_id,
                    kind=kind,
                    name=name.strip(),
                    description=description,
                    created_by=user_id,
                )
            )

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    organization_id=organization_id,
                    actor_id=user_id,
                    action=_CREATED_ACTION[kind],
                    entity_type=kind.value,
                    entity_id=created.id,
                )

            await uow.commit()
            return created

    async def list_for_organization(
        self, organization_id: UUID, user_id: UUID, kind: ResourceKind
    ) -> list[Resource]:
        """Non-archived resources of one kind. Requires membership."""
        async with self._uow_factory() as uow:
            await require_organization(uow, organization_id)
            await require_member(uow, organization_id, user_id)
            return await uow.resources.get_for_organization(  # type: ignore[no-any-return]
                organization_id, kind
            )
