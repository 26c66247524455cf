"""Service factories shared by the auth dependencies and the v1 routes.

Kept outside the ``api.v1`` package: importing ``api.v1`` loads every route
module, and those import ``api.dependencies.auth``.
"""

from functools import lru_cache
from typing import Callable

from domain.services.user_service import UserService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_user_service() -> UserService:
    """Get User service instance."""
    return UserService(get_uow_factory())
