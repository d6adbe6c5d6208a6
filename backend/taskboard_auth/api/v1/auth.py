"""Password authentication and session endpoints.

Register, login, logout and the current-user probe. Email verification
endpoints live in auth_email.py.
"""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from taskboard_auth.api.deps import (
    AppSettings,
    CurrentUser,
    DbSession,
    Mailer,
    Sessions,
    clear_session_cookie,
    set_session_cookie,
)
from taskboard_auth.core.responses import DataResponse
from taskboard_auth.models.account import Account
from taskboard_auth.services.registration import (
    authenticate_password,
    register_account,
)
from taskboard_auth.services.session_manager import AuthUser

router = APIRouter()


# ===================================================================
# Request / response models
# ===================================================================


class CredentialsRequest(BaseModel):
    """Request body for POST /auth/register and POST /auth/login."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1, max_length=1024)


class UserResponse(BaseModel):
    """Public view of the signed-in account."""

    id: int
    email: str
    email_verified: bool

    @classmethod
    def of(cls, user: Account | AuthUser) -> "UserResponse":
        return cls(id=user.id, email=user.email, email_verified=user.email_verified)


# ===================================================================
# Endpoints
# ===================================================================


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: CredentialsRequest,
    response: Response,
    db: DbSession,
    settings: AppSettings,
    sessions: Sessions,
    sender: Mailer,
) -> DataResponse[UserResponse]:
    """Create a password account, send the verification email, sign in.

    The session is issued immediately; verified-only routes stay closed
    until the email is confirmed.
    """
    account = await register_account(
        db,
        body.email,
        body.password,
        sender=sender,
        settings=settings,
    )
    set_session_cookie(response, sessions.create_session(account), settings)
    return DataResponse(data=UserResponse.of(account))


@router.post("/login")
async def login(
    body: CredentialsRequest,
    response: Response,
    db: DbSession,
    settings: AppSettings,
    sessions: Sessions,
) -> DataResponse[UserResponse]:
    """Sign in with email and password."""
    account = await authenticate_password(db, body.email, body.password)
    set_session_cookie(response, sessions.create_session(account), settings)
    return DataResponse(data=UserResponse.of(account))


@router.post("/logout")
async def logout(response: Response, settings: AppSettings) -> DataResponse[dict]:
    """Clear the session cookie. Sessions are stateless; nothing is revoked."""
    clear_session_cookie(response, settings)
    return DataResponse(data={"message": "Logged out"})


@router.get("/me")
async def me(user: CurrentUser) -> DataResponse[UserResponse]:
    """Return the signed-in user (renewing the cookie when due)."""
    return DataResponse(data=UserResponse.of(user))
