"""Passkey (WebAuthn) endpoints.

Registration requires a signed-in user; authentication issues a session.
"""

from typing import Any

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, ConfigDict, EmailStr

from taskboard_auth.api.deps import (
    AppSettings,
    CurrentUser,
    DbSession,
    Sessions,
    WebAuthn,
    request_origin,
    set_session_cookie,
)
from taskboard_auth.api.v1.auth import UserResponse
from taskboard_auth.core.responses import DataResponse
from taskboard_auth.services import passkey as passkey_service

router = APIRouter()


class CredentialRequest(BaseModel):
    """Body carrying a PublicKeyCredential serialized by the browser."""

    model_config = ConfigDict(extra="forbid")

    response: dict[str, Any]


class LoginOptionsRequest(BaseModel):
    """Request body for POST /auth/passkey/login/options."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr | None = None


class PasskeyCheckRequest(BaseModel):
    """Request body for POST /auth/passkey/check."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


@router.post("/passkey/register/options")
async def registration_options(
    request: Request,
    user: CurrentUser,
    db: DbSession,
    settings: AppSettings,
    webauthn: WebAuthn,
) -> DataResponse[dict[str, Any]]:
    """Creation options for the signed-in user."""
    options = await passkey_service.generate_registration_options(
        db,
        user.id,
        user.email,
        webauthn=webauthn,
        settings=settings,
        origin=request_origin(request, settings),
    )
    return DataResponse(data=options)


@router.post("/passkey/register/verify")
async def registration_verify(
    body: CredentialRequest,
    request: Request,
    user: CurrentUser,
    db: DbSession,
    settings: AppSettings,
    webauthn: WebAuthn,
) -> DataResponse[dict]:
    """Store the attested credential as the user's passkey."""
    await passkey_service.verify_registration(
        db,
        user.id,
        body.response,
        request_origin(request, settings),
        webauthn=webauthn,
        settings=settings,
    )
    return DataResponse(data={"verified": True})


@router.post("/passkey/login/options")
async def authentication_options(
    body: LoginOptionsRequest,
    request: Request,
    db: DbSession,
    settings: AppSettings,
    webauthn: WebAuthn,
) -> DataResponse[dict[str, Any]]:
    """Request options, optionally narrowed to one account."""
    options = await passkey_service.generate_authentication_options(
        db,
        body.email,
        request_origin(request, settings),
        webauthn=webauthn,
        settings=settings,
    )
    return DataResponse(data=options)


@router.post("/passkey/login/verify")
async def authentication_verify(
    body: CredentialRequest,
    request: Request,
    response: Response,
    db: DbSession,
    settings: AppSettings,
    sessions: Sessions,
    webauthn: WebAuthn,
) -> DataResponse[UserResponse]:
    """Verify the assertion and sign in."""
    account = await passkey_service.verify_authentication(
        db,
        body.response,
        request_origin(request, settings),
        webauthn=webauthn,
        settings=settings,
    )
    set_session_cookie(response, sessions.create_session(account), settings)
    return DataResponse(data=UserResponse.of(account))


@router.post("/passkey/check")
async def passkey_check(body: PasskeyCheckRequest, db: DbSession) -> DataResponse[dict]:
    """Tell the login form whether to offer passkey sign-in."""
    return DataResponse(
        data={"has_passkey": await passkey_service.has_passkey(db, body.email)}
    )
