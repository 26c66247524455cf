"""Unit tests for VerificationService."""

from datetime import datetime, timedelta

import pytest

from core.exceptions import TooManyAttemptsError, UserNotFoundError, VerificationFailedError
from domain.entities.user import EmailVerification, User
from domain.services.verification_service import (
    VerificationService,
    check_code,
    generate_code,
    hash_code,
)
from tests.unit.conftest import FakeUnitOfWork


@pytest.fixture
def service(uow: FakeUnitOfWork) -> VerificationService:
    return VerificationService(lambda: uow)


@pytest.fixture
def user() -> User:
    return User(email="new@example.com", name="New")


def _with_code(user: User, code: str, **kw: object) -> User:
    fields: dict = {
        "otp_hash": hash_code(code),
        "expires_at": datetime.utcnow() + timedelta(minutes=10),
        "attempts": 0,
        "last_sent_at": datetime.utcnow() - timedelta(minutes=2),
    }
    fields.update(kw)
    user.verification = EmailVerification(**fields)
    return user


class TestCodes:
    def test_generated_code_is_six_digits(self) -> None:
        for _ in range(20):
            code = generate_code()
            assert len(code) == 6
            assert code.isdigit()

    def test_hash_round_trip(self) -> None:
        hashed = hash_code("123456")
        assert hashed != "123456"
        assert check_code("123456", hashed)
        assert not check_code("654321", hashed)

    def test_check_against_garbage_hash(self) -> None:
        assert not check_code("123456", "not-a-bcrypt-hash")


class TestRequestCode:
    @pytest.mark.asyncio
    async def test_issues_code_and_stores_hash(
        self, service: VerificationService, uow: FakeUnitOfWork, user: User
    ) -> None:
        uow.users.get_by_email.return_value = user

        result = await service.request_code("New@Example.com")

        assert result.code is not None
        assert not result.already_verified
        assert user.verification.otp_hash is not None
        assert user.verification.otp_hash != result.code
        assert check_code(result.code, user.verification.otp_hash)
        assert user.verification.attempts == 0
        uow.users.get_by_email.assert_awaited_once_with("new@example.com")
        assert uow.committed

    @pytest.mark.asyncio
    async def test_already_verified(
        self, service: VerificationService, uow: FakeUnitOfWork, user: User
    ) -> None:
        user.email_verified = True
        uow.users.get_by_email.return_value = user

        result = await service.request_code(user.email)

        assert result.already_verified
        uow.users.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_resend_too_soon(
        self, service: VerificationService, uow: FakeUnitOfWork, user: User
    ) -> None:
        _with_code(user, "123456", last_sent_at=datetime.utcnow() - timedelta(seconds=10))
        uow.users.get_by_email.return_value = user

        with pytest.raises(TooManyAttemptsError):
            await service.request_code(user.email)

    @pytest.mark.asyncio
    async def test_unknown_email(self, service: VerificationService, uow: FakeUnitOfWork) -> None:
        uow.users.get_by_email.return_value = None

        with pytest.raises(UserNotFoundError):
            await service.request_code("ghost@example.com")


class TestConfirm:
    @pytest.mark.asyncio
    async def test_correct_code_verifies(
        self, service: VerificationService, uow: FakeUnitOfWork, user: User
    ) -> None:
        uow.users.get_by_email.return_value = _with_code(user, "123456")

        result = await service.confirm(user.email, "123 456")

        assert result.email_verified
        assert result.verification.otp_hash is None
        assert uow.committed

    @pytest.mark.asyncio
    async def test_wrong_code_counts_attempt(
        self, service: VerificationService, uow: FakeUnitOfWork, user: User
    ) -> None:
        uow.users.get_by_email.return_value = _with_code(user, "123456")

        with pytest.raises(VerificationFailedError):
            await service.confirm(user.email, "000000")

        assert user.verification.attempts == 1
        assert not user.email_verified
        assert uow.committed

    @pytest.mark.asyncio
    async def test_attempts_exhausted(
        self, service: VerificationService, uow: FakeUnitOfWork, user: User
    ) -> None:
        uow.users.get_by_email.return_value = _with_code(user, "123456", attempts=5)

        with pytest.raises(TooManyAttemptsError):
            await service.confirm(user.email, "123456")

    @pytest.mark.asyncio
    async def test_expired_code(
        self, service: VerificationService, uow: FakeUnitOfWork, user: User
    ) -> None:
        uow.users.get_by_email.return_value = _with_code(
            user, "123456", expires_at=datetime.utcnow() - timedelta(seconds=1)
        )

        with pytest.raises(VerificationFailedError):
            await service.confirm(user.email, "123456")

    @pytest.mark.asyncio
    async def test_no_active_code(
        self, service: VerificationService, uow: FakeUnitOfWork, user: User
    ) -> None:
        uow.users.get_by_email.return_value = user

        with pytest.raises(VerificationFailedError):
            await service.confirm(user.email, "123456")
