"""Password reset endpoints.

forgot-password always answers the same way so it cannot be used to probe
for registered addresses.
"""

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from taskboard_auth.api.deps import AppSettings, DbSession, Mailer
from taskboard_auth.core.responses import DataResponse
from taskboard_auth.services.password_reset import (
    request_password_reset,
    reset_password,
    verify_reset_token,
)

router = APIRouter()

_FORGOT_MESSAGE = "If an account exists for this email, a reset link has been sent."


class ForgotPasswordRequest(BaseModel):
    """Request body for POST /auth/forgot-password."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Request body for POST /auth/reset-password."""

    model_config = ConfigDict(extra="forbid")

    token: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=1024)


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    db: DbSession,
    settings: AppSettings,
    sender: Mailer,
) -> DataResponse[dict]:
    """Email a reset link if the account has a password."""
    await request_password_reset(
        db,
        body.email,
        sender=sender,
        settings=settings,
    )
    return DataResponse(data={"message": _FORGOT_MESSAGE})


@router.get("/reset-password")
async def check_reset_token(
    db: DbSession,
    token: str = Query(min_length=1, max_length=255),
) -> DataResponse[dict]:
    """Validate a reset token before showing the new-password form."""
    info = await verify_reset_token(db, token)
    return DataResponse(data={"email": info.email})


@router.post("/reset-password")
async def reset_password_endpoint(
    body: ResetPasswordRequest,
    db: DbSession,
    settings: AppSettings,
) -> DataResponse[dict]:
    """Set a new password using a reset token."""
    await reset_password(db, body.token, body.password, settings=settings)
    return DataResponse(data={"message": "Password updated"})
