"""Google OAuth endpoints.

Authorization-code flow with PKCE. State and verifier are stored
server-side (oauth_states) and consumed on the callback.
"""

from urllib.parse import urlencode

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse
from starlette.responses import Response

from taskboard_auth.api.deps import AppSettings, DbSession, Sessions, set_session_cookie
from taskboard_auth.core.errors import validation_error
from taskboard_auth.services.google_oauth import (
    complete_google_authorization,
    start_google_authorization,
)

router = APIRouter()


def _get_api_callback_url(request: Request) -> str:
    """Build the OAuth callback URL from the request's base URL."""
    base = str(request.base_url).rstrip("/")
    return f"{base}/api/v1/auth/google/callback"


@router.get("/google/authorize")
async def google_authorize(
    request: Request,
    db: DbSession,
    settings: AppSettings,
    redirect_to: str | None = None,
) -> Response:
    """Redirect to Google's consent screen."""
    auth_url = await start_google_authorization(
        db,
        settings=settings,
        redirect_uri=_get_api_callback_url(request),
        redirect_to=redirect_to,
    )
    return RedirectResponse(url=auth_url, status_code=307)


@router.get("/google/callback")
async def google_callback(
    request: Request,
    db: DbSession,
    settings: AppSettings,
    sessions: Sessions,
    code: str | None = None,
    state: str | None = None,
) -> Response:
    """Finish sign-in, set the session cookie and return to the app.

    Accounts without a passkey land with ``passkey_prompt=1`` so the app can
    offer enrolment.
    """
    if not code:
        raise validation_error("Missing authorization code")
    if not state:
        raise validation_error("Missing state parameter")

    result = await complete_google_authorization(
        db,
        settings=settings,
        code=code,
        state=state,
        redirect_uri=_get_api_callback_url(request),
    )

    target = f"{settings.app_base_url.rstrip('/')}{result.redirect_to or '/'}"
    if not result.has_passkey:
        separator = "&" if "?" in target else "?"
        target = f"{target}{separator}{urlencode({'passkey_prompt': '1'})}"

    redirect = RedirectResponse(url=target, status_code=307)
    set_session_cookie(redirect, sessions.create_session(result.account), settings)
    return redirect
