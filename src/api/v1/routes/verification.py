"""Email verification API routes (public)."""

import structlog
from fastapi import APIRouter, Depends, Request

from api.v1.dependencies import get_email_dispatcher, get_verification_service
from api.v1.schemas.verification import (
    VerificationCodeRequest,
    VerificationConfirmRequest,
    VerificationResponse,
)
from core.rate_limit import limiter
from domain.services.verification_service import VerificationService
from infrastructure.email.dispatcher import EmailDispatcher

logger = structlog.get_logger()

router = APIRouter(prefix="/auth/verify", tags=["verification"])


@router.post(
    "/request",
    response_model=VerificationResponse,
    summary="Send an email verification code",
    responses={
        404: {"description": "User not found"},
        429: {"description": "A code was sent too recently"},
    },
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def request_verification_code(
    request: Request,
    body: VerificationCodeRequest,
    service: VerificationService = Depends(get_verification_service),
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
) -> VerificationResponse:
    issued = await service.request_code(body.email)
    if issued.already_verified or issued.code is None:
        return VerificationResponse(message="Email already verified")

    result = await dispatcher.send_verification_code(
        issued.user.email, issued.user.name, issued.code
    )
    if not result.success:
        logger.warning(
            "verification_email_failed", user_id=str(issued.user.id), error=result.error
        )
    return VerificationResponse(message="Verification code sent")


@router.post(
    "/confirm",
    response_model=VerificationResponse,
    summary="Confirm an email verification code",
    responses={
        400: {"description": "Invalid or expired code"},
        429: {"description": "Too many attempts"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def confirm_verification_code(
    request: Request,
    body: VerificationConfirmRequest,
    service: VerificationService = Depends(get_verification_service),
) -> VerificationResponse:
    await service.confirm(body.email, body.code)
    return VerificationResponse(message="Email verified")
