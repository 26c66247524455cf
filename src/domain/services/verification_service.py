"""Email verification by one-time code.

Codes are six digits, stored only as a bcrypt hash on the user row, and
expire after a few minutes. Failed confirmations are counted per code.
"""

import re
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

import bcrypt
import structlog

from core.exceptions import TooManyAttemptsError, UserNotFoundError, VerificationFailedError
from domain.entities.invitation import normalize_email
from domain.entities.user import EmailVerification, User
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()

CODE_LENGTH = 6


def generate_code() -> str:
    return str(secrets.randbelow(900_000) + 100_000)


def hash_code(code: str) -> str:
    return bcrypt.hashpw(code.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def check_code(code: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(code.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


@dataclass
class CodeRequest:
    """Result of asking for a code. ``code`` is set only when one was issued."""

    user: User
    code: str | None = None

    @property
    def already_verified(self) -> bool:
        return self.code is None


class VerificationService:
    """Issue and confirm email verification codes."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        ttl_minutes: int = 10,
        resend_seconds: int = 60,
        max_attempts: int = 5,
    ) -> None:
        self._uow_factory = uow_factory
        self._ttl = timedelta(minutes=ttl_minutes)
        self._resend = timedelta(seconds=resend_seconds)
        self._max_attempts = max_attempts

    async def request_code(self, email: str) -> CodeRequest:
        """Issue a fresh code for an unverified user.

        Raises:
            UserNotFoundError: No user with that email.
            TooManyAttemptsError: A code was sent less than a minute ago.
        """
        async with self._uow_factory() as uow:
            user = await self._require_user(uow, email)
            if user.email_verified:
                return CodeRequest(user=user)

            now = datetime.utcnow()
            last_sent = user.verification.last_sent_at
            if last_sent is not None and now - last_sent < self._resend:
                raise TooManyAttemptsError("Please wait before requesting another code")

            code = generate_code()
            user.verification = EmailVerification(
                otp_hash=hash_code(code),
                expires_at=now + self._ttl,
                attempts=0,
                last_sent_at=now,
            )
            user.updated_at = now
            await uow.users.update(user)
            await uow.commit()

        logger.info("verification_code_issued", user_id=str(user.id))
        return CodeRequest(user=user, code=code)

    async def confirm(self, email: str, code: str) -> User:
        """Check a code and mark the email verified.

        Raises:
            UserNotFoundError: No user with that email.
            VerificationFailedError: No active code, expired or wrong code.
            TooManyAttemptsError: The attempt limit for this code is used up.
        """
        async with self._uow_factory() as uow:
            user = await self._require_user(uow, email)
            if user.email_verified:
                return user

            verification = user.verification
            if not verification.otp_hash or not verification.expires_at:
                raise VerificationFailedError("No active verification code")

            if datetime.utcnow() > verification.expires_at:
                raise VerificationFailedError("Verification code expired")

            if verification.attempts >= self._max_attempts:
                raise TooManyAttemptsError("Too many attempts")

            normalized = re.sub(r"\D", "", code)
            if len(normalized) != CODE_LENGTH or not check_code(
                normalized, verification.otp_hash
            ):
                verification.attempts += 1
                await uow.users.update(user)
                await uow.commit()
                logger.info(
                    "verification_code_rejected",
                    user_id=str(user.id),
                    attempts=verification.attempts,
                )
                raise VerificationFailedError("Invalid code")

            user.email_verified = True
            user.verification = EmailVerification()
            user.updated_at = datetime.utcnow()
            await uow.users.update(user)
            await uow.commit()

        logger.info("email_verified", user_id=str(user.id))
        return user

    @staticmethod
    async def _require_user(uow: IUnitOfWork, email: str) -> User:
        user = await uow.users.get_by_email(normalize_email(email))
        if not user:
            raise UserNotFoundError(email)
        return user
