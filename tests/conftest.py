"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncContextManager
from uuid import uuid4

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import Base
from infrastructure.email.dispatcher import DispatchResult, EmailDispatcher


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed test user ID for consistency
TEST_USER_ID = uuid4()


class RecordingDispatcher(EmailDispatcher):
    """Dispatcher that records messages instead of talking to SMTP."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[dict[str, Any]] = []

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        from_name: str | None = None,
    ) -> DispatchResult:
        self.sent.append({"to": to_email, "subject": subject, "html": html_body})
        return DispatchResult(success=True)


@pytest.fixture(scope="session")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
    )
    yield engine
    await engine.dispose()


@pytest.fixture(scope="session")
async def setup_database(engine: AsyncEngine) -> AsyncGenerator[None, None]:
    """Create all tables once per session."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="session")
async def session_factory(
    engine: AsyncEngine, setup_database: None
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create session factory."""
    factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    yield factory


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def test_user() -> TokenUser:
    """Create a test user with fixed ID."""
    return TokenUser(
        id=TEST_USER_ID,
        email="test@example.com",
        display_name="Test User",
    )


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key="test-secret-key",
        algorithm="HS256",
        expire_minutes=30,
    )


@pytest.fixture
def auth_token(auth_provider: JWTAuthProvider, test_user: TokenUser) -> str:
    """Create auth token for test user."""
    return str(auth_provider.create_token(test_user))


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no auth)."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def test_app(
    session_factory: async_sessionmaker[AsyncSession],
    auth_provider: JWTAuthProvider,
    dispatcher: RecordingDispatcher,
) -> FastAPI:
    """
    Create an app wired to the in-memory SQLite database.

    Every service dependency is overridden to use a UoW factory bound to the
    test session factory. Authentication is left to the individual clients.
    """
    from api.dependencies.auth import get_auth_provider
    from api.v1.dependencies import (
        get_audit_service,
        get_email_dispatcher,
        get_invitation_service,
        get_membership_service,
        get_organization_service,
        get_resource_service,
        get_user_service,
        get_verification_service,
    )
    from domain.services.audit_service import AuditService
    from domain.services.invitation_service import InvitationService
    from domain.services.membership_service import MembershipService
    from domain.services.organization_service import OrganizationService
    from domain.services.resource_service import ResourceService
    from domain.services.user_service import UserService
    from domain.services.verification_service import VerificationService
    from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
    from main import create_app

    app = create_app()

    def test_uow_factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    audit_service = AuditService(test_uow_factory)
    membership_service = MembershipService(test_uow_factory, audit_service=audit_service)

    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.dependency_overrides[get_audit_service] = lambda: audit_service
    app.dependency_overrides[get_membership_service] = lambda: membership_service
    app.dependency_overrides[get_invitation_service] = lambda: InvitationService(
        test_uow_factory,
        membership_service=membership_service,
        audit_service=audit_service,
    )
    app.dependency_overrides[get_organization_service] = lambda: OrganizationService(
        test_uow_factory, audit_service=audit_service
    )
    app.dependency_overrides[get_resource_service] = lambda: ResourceService(
        test_uow_factory, audit_service=audit_service
    )
    app.dependency_overrides[get_user_service] = lambda: UserService(test_uow_factory)
    app.dependency_overrides[get_verification_service] = lambda: VerificationService(
        test_uow_factory
    )
    app.dependency_overrides[get_email_dispatcher] = lambda: dispatcher
    return app


@pytest.fixture
def client_for(
    test_app: FastAPI,
) -> Callable[[TokenUser], AsyncContextManager[AsyncClient]]:
    """
    Build clients that act as a given user.

    The token user is resolved per request from the ``X-Test-User`` header so
    several users can share one app instance.
    """
    from fastapi import Request

    from api.dependencies.auth import get_current_user
    from core.exceptions import AuthenticationError

    users: dict[str, TokenUser] = {}

    async def override_get_user(request: Request) -> TokenUser:
        user = users.get(request.headers.get("X-Test-User", ""))
        if user is None:
            raise AuthenticationError(message="Authorization header required")
        return user

    test_app.dependency_overrides[get_current_user] = override_get_user

    @asynccontextmanager
    async def make(user: TokenUser) -> AsyncGenerator[AsyncClient, None]:
        users[str(user.id)] = user
        transport = ASGITransport(app=test_app)
        async with AsyncClient(
            transport=transport,
            base_url="http://test",
            headers={"X-Test-User": str(user.id)},
        ) as c:
            yield c

    return make


@pytest.fixture
async def authenticated_client(
    client_for: Callable[[TokenUser], AsyncContextManager[AsyncClient]],
    test_user: TokenUser,
) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as the fixed test user."""
    async with client_for(test_user) as c:
        yield c


@pytest.fixture
async def public_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client with the test database wiring but no credentials."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def make_user() -> Callable[[str], TokenUser]:
    """Factory for fresh identities with unique emails."""

    def make(name: str = "Someone") -> TokenUser:
        uid = uuid4()
        return TokenUser(
            id=uid,
            email=f"{name.lower()}-{uid.hex[:8]}@example.com",
            display_name=name,
        )

    return make
