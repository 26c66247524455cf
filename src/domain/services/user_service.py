"""Local user records mirrored from the identity provider."""

from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from domain.entities.invitation import normalize_email
from domain.entities.user import User
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class UserService:
    """Keeps the local user row in step with token claims."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def ensure_user(self, user_id: UUID, email: str, name: str | None = None) -> User:
        """Return the user for a token subject, creating or refreshing it.

        Concurrent first requests may both try to insert; the loser re-reads
        the row the winner created. A changed email that collides with another
        user is logged and the stored address is kept.
        """
        email = normalize_email(email)
        display_name = (name or email.split("@")[0]).strip()

        async with self._uow_factory() as uow:
            user = await uow.users.get(user_id)
            if user:
                if user.email != email or (name and user.name != display_name):
                    user.email = email
                    if name:
                        user.name = display_name
                    user.updated_at = datetime.utcnow()
                    try:
                        user = await uow.users.update(user)
                        await uow.commit()
                    except IntegrityError:
                        # Another row already holds the new address; keep the stored one
                        await uow.rollback()
                        logger.warning("user_email_conflict", user_id=str(user_id), email=email)
                        stored = await uow.users.get(user_id)
                        if stored is None:
                            raise
                        return stored
                return user

            try:
                created = await uow.users.create(User(id=user_id, email=email, name=display_name))
                await uow.commit()
            except IntegrityError as exc:
                await uow.rollback()
                orig = str(exc.orig).lower() if exc.orig else ""
                if "unique" not in orig and "duplicate" not in orig:
                    raise
                existing = await uow.users.get(user_id)
                if existing is None:
                    raise
                return existing

        logger.info("user_provisioned", user_id=str(user_id))
        return created
