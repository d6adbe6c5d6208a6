"""Email verification endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from taskboard_auth.api.deps import AppSettings, DbSession, Mailer
from taskboard_auth.core.responses import DataResponse
from taskboard_auth.services.email_verification import (
    resend_verification,
    verify_email,
)

router = APIRouter()

# Same response whether or not the email is registered
_RESEND_MESSAGE = "If the account exists and is unverified, a new email has been sent."


class VerifyEmailRequest(BaseModel):
    """Request body for POST /auth/verify-email."""

    model_config = ConfigDict(extra="forbid")

    token: str = Field(min_length=1, max_length=255)


class ResendVerificationRequest(BaseModel):
    """Request body for POST /auth/resend-verification."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


@router.post("/verify-email")
async def verify_email_endpoint(
    body: VerifyEmailRequest,
    db: DbSession,
) -> DataResponse[dict]:
    """Consume a verification token."""
    account = await verify_email(db, body.token)
    return DataResponse(data={"email": account.email, "email_verified": True})


@router.post("/resend-verification")
async def resend_verification_endpoint(
    body: ResendVerificationRequest,
    db: DbSession,
    settings: AppSettings,
    sender: Mailer,
) -> DataResponse[dict]:
    """Re-send the verification email (always the same response)."""
    await resend_verification(
        db,
        body.email,
        sender=sender,
        settings=settings,
    )
    return DataResponse(data={"message": _RESEND_MESSAGE})
