"""Shared dependencies for API endpoints.

Collaborators (settings, session manager, email sender, WebAuthn primitive)
are built once in create_app() and read from app.state, so tests can swap
them by building an app with their own instances.
"""

from typing import Annotated

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.core.config import Settings
from taskboard_auth.core.database import get_db
from taskboard_auth.core.errors import AuthError, ErrorKind
from taskboard_auth.providers.email.base import EmailSender
from taskboard_auth.providers.webauthn.base import WebAuthnProvider
from taskboard_auth.services.session_manager import AuthUser, SessionManager


def get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def get_session_manager(request: Request) -> SessionManager:
    manager: SessionManager = request.app.state.session_manager
    return manager


def get_email_sender(request: Request) -> EmailSender:
    sender: EmailSender = request.app.state.email_sender
    return sender


def get_webauthn(request: Request) -> WebAuthnProvider:
    provider: WebAuthnProvider = request.app.state.webauthn
    return provider


DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]
Sessions = Annotated[SessionManager, Depends(get_session_manager)]
Mailer = Annotated[EmailSender, Depends(get_email_sender)]
WebAuthn = Annotated[WebAuthnProvider, Depends(get_webauthn)]


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """Set the httpOnly session cookie on a response.

    Security: httpOnly prevents XSS cookie theft. Secure flag and SameSite
    are configured via settings for environment-appropriate security.

    Args:
        response: FastAPI response object.
        token: Session token string.
        settings: Application settings (cookie name, flags, lifetime).
    """
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        path="/",
        max_age=int(settings.session_ttl.total_seconds()),
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Remove the session cookie."""
    response.delete_cookie(
        key=settings.auth_cookie_name,
        path="/",
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
    )


def request_origin(request: Request, settings: Settings) -> str:
    """Origin the browser reports, falling back to the configured app URL."""
    origin = request.headers.get("origin")
    if origin:
        return origin.rstrip("/")
    return settings.app_base_url.rstrip("/")


async def get_current_user(
    request: Request,
    response: Response,
    db: DbSession,
    settings: AppSettings,
    sessions: Sessions,
) -> AuthUser:
    """Authenticate the request from the session cookie.

    A renewed token from the session manager is written back to the cookie.

    Raises:
        AuthError: AUTH_REQUIRED for a missing, invalid or orphaned session.
    """
    token = request.cookies.get(settings.auth_cookie_name)
    result = await sessions.require_user(db, token)
    if result.new_token:
        set_session_cookie(response, result.new_token, settings)
    if result.user is None:
        raise AuthError(ErrorKind.AUTH_REQUIRED, detail="no_user")
    return result.user


async def get_verified_user(
    request: Request,
    response: Response,
    db: DbSession,
    settings: AppSettings,
    sessions: Sessions,
) -> AuthUser:
    """Like get_current_user, but the email must be verified.

    Raises:
        AuthError: AUTH_REQUIRED or VERIFICATION_PENDING.
    """
    token = request.cookies.get(settings.auth_cookie_name)
    result = await sessions.require_verified_user(db, token)
    if result.new_token:
        set_session_cookie(response, result.new_token, settings)
    if result.user is None:
        raise AuthError(ErrorKind.AUTH_REQUIRED, detail="no_user")
    return result.user


CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
VerifiedUser = Annotated[AuthUser, Depends(get_verified_user)]
