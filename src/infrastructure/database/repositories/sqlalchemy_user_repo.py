"""SQLAlchemy implementation of User repository."""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.user import EmailVerification, User, UserStatus
from infrastructure.database.models import UserModel


class SQLAlchemyUserRepository:
    """SQLAlchemy implementation of IUserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> User | None:
        """Get a user by ID."""
        stmt = select(UserModel).where(UserModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by (normalized) email."""
        stmt = select(UserModel).where(UserModel.email == email)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, user: User) -> User:
        """Create a new user."""
        model = self._to_model(user)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, user: User) -> User:
        """Persist changes to an existing user."""
        stmt = select(UserModel).where(UserModel.id == user.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"User {user.id} not found")

        model.email = user.email
        model.name = user.name
        model.status = user.status.value
        model.is_active = user.is_active
        model.current_organization_id = user.current_organization_id
        model.email_verified = user.email_verified
        model.otp_hash = user.verification.otp_hash
        model.otp_expires_at = user.verification.expires_at
        model.otp_attempts = user.verification.attempts
        model.otp_last_sent_at = user.verification.last_sent_at
        model.updated_at = user.updated_at

        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def clear_current_organization(self, organization_id: UUID) -> int:
        """Unset current organization for every user pointing at it."""
        stmt = (
            update(UserModel)
            .where(UserModel.current_organization_id == organization_id)
            .values(current_organization_id=None)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    def _to_entity(self, model: UserModel) -> User:
        """Convert ORM model to domain entity."""
        return User(
            id=model.id,
            email=model.email,
            name=model.name,
            status=UserStatus(model.status),
            is_active=model.is_active,
            current_organization_id=model.current_organization_id,
            email_verified=model.email_verified,
            verification=EmailVerification(
                otp_hash=model.otp_hash,
                expires_at=model.otp_expires_at,
                attempts=model.otp_attempts or 0,
                last_sent_at=model.otp_last_sent_at,
            ),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: User) -> UserModel:
        """Convert domain entity to ORM model."""
        return UserModel(
            id=entity.id,
            email=entity.email,
            name=entity.name,
            status=entity.status.value,
            is_active=entity.is_active,
            current_organization_id=entity.current_organization_id,
            email_verified=entity.email_verified,
            otp_hash=entity.verification.otp_hash,
            otp_expires_at=entity.verification.expires_at,
            otp_attempts=entity.verification.attempts,
            otp_last_sent_at=entity.verification.last_sent_at,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
