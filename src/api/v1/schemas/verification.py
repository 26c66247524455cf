"""Pydantic schemas for email verification."""

from pydantic import BaseModel, Field, field_validator

from api.v1.schemas.common import check_email


class VerificationCodeRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return check_email(v)


class VerificationConfirmRequest(VerificationCodeRequest):
    code: str = Field(..., min_length=1, max_length=20)


class VerificationResponse(BaseModel):
    success: bool = True
    message: str
