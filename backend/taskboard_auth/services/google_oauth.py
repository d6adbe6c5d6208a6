"""Google sign-in via the OAuth 2.0 authorization-code flow with PKCE.

Start: persist a random state + PKCE verifier and redirect to Google.
Complete: consume the state (single-use), exchange the code, fetch the
profile, then link or create the account.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.core import oauth_client
from taskboard_auth.core.config import Settings
from taskboard_auth.core.errors import AuthError, ErrorKind
from taskboard_auth.core.oauth import (
    build_authorization_url,
    generate_code_challenge,
    generate_code_verifier,
    generate_state,
)
from taskboard_auth.core.tokens import generate_expiry, is_expired
from taskboard_auth.models.account import Account
from taskboard_auth.repositories.account_repository import AccountRepository
from taskboard_auth.repositories.oauth_state_repository import OAuthStateRepository
from taskboard_auth.repositories.passkey_repository import PasskeyRepository

logger = logging.getLogger(__name__)

_PROVIDER = "google"


@dataclass(frozen=True)
class OAuthLoginResult:
    """Outcome of a completed Google sign-in.

    Attributes:
        account: Signed-in account.
        created: True if the account was created by this sign-in.
        has_passkey: Whether the account already has a passkey; callers
            prompt enrolment when it does not.
        redirect_to: In-app path requested at start, if any.
    """

    account: Account
    created: bool
    has_passkey: bool
    redirect_to: str | None


def _require_configured(settings: Settings) -> tuple[str, str]:
    if not settings.google_oauth_configured:
        raise AuthError(ErrorKind.CONFIGURATION_ERROR, detail="google_oauth")
    return (
        settings.google_client_id,
        settings.google_client_secret.get_secret_value(),
    )


def _safe_redirect(path: str | None) -> str | None:
    """Keep only same-site absolute paths (no scheme, no //host)."""
    if not path or not path.startswith("/") or path.startswith("//"):
        return None
    if "\\" in path:
        return None
    return path


async def start_google_authorization(
    db: AsyncSession,
    *,
    settings: Settings,
    redirect_uri: str,
    redirect_to: str | None = None,
) -> str:
    """Persist OAuth state and return the Google authorization URL.

    Args:
        db: Async database session.
        settings: Application settings (client credentials, state lifetime).
        redirect_uri: Callback URL registered with Google.
        redirect_to: Optional in-app path to land on after sign-in.

    Returns:
        URL to redirect the browser to.

    Raises:
        AuthError: CONFIGURATION_ERROR if Google credentials are missing.
    """
    client_id, _ = _require_configured(settings)

    state = generate_state()
    verifier = generate_code_verifier()
    await OAuthStateRepository.create(
        db,
        state=state,
        code_verifier=verifier,
        provider=_PROVIDER,
        expires_at=generate_expiry(settings.oauth_state_ttl),
        redirect_to=_safe_redirect(redirect_to),
    )
    await db.commit()

    return build_authorization_url(
        provider=_PROVIDER,
        client_id=client_id,
        redirect_uri=redirect_uri,
        state=state,
        code_challenge=generate_code_challenge(verifier),
    )


async def _fetch_profile(
    *,
    client_id: str,
    client_secret: str,
    code: str,
    code_verifier: str,
    redirect_uri: str,
) -> dict[str, Any]:
    try:
        tokens = await oauth_client.exchange_code_for_tokens(
            provider=_PROVIDER,
            client_id=client_id,
            client_secret=client_secret,
            code=code,
            code_verifier=code_verifier,
            redirect_uri=redirect_uri,
        )
    except httpx.HTTPError as exc:
        logger.warning("Google token exchange failed", exc_info=True)
        raise AuthError(ErrorKind.OAUTH_FAILED, detail="token_exchange") from exc

    access_token = tokens.get("access_token")
    if not access_token:
        raise AuthError(ErrorKind.OAUTH_FAILED, detail="missing_access_token")

    try:
        return await oauth_client.fetch_userinfo(
            provider=_PROVIDER, access_token=access_token
        )
    except httpx.HTTPError as exc:
        logger.warning("Google userinfo fetch failed", exc_info=True)
        raise AuthError(ErrorKind.OAUTH_FAILED, detail="userinfo") from exc


async def complete_google_authorization(
    db: AsyncSession,
    *,
    settings: Settings,
    code: str,
    state: str,
    redirect_uri: str,
) -> OAuthLoginResult:
    """Finish the Google callback and sign the user in.

    The state row is deleted and committed before any other check, whatever
    the outcome.

    Args:
        db: Async database session.
        settings: Application settings.
        code: Authorization code from the callback.
        state: State parameter from the callback.
        redirect_uri: Same callback URL used at start.

    Returns:
        OAuthLoginResult for the linked or created account.

    Raises:
        AuthError: CONFIGURATION_ERROR, INVALID_TOKEN (unknown or expired
            state) or OAUTH_FAILED.
    """
    client_id, client_secret = _require_configured(settings)

    pending = await OAuthStateRepository.get_by_state(db, state)
    if pending is None or pending.provider != _PROVIDER:
        raise AuthError(ErrorKind.INVALID_TOKEN, detail="oauth_state")

    await OAuthStateRepository.delete_by_state(db, state)
    await db.commit()

    if is_expired(pending.expires_at):
        raise AuthError(ErrorKind.INVALID_TOKEN, detail="oauth_state_expired")

    profile = await _fetch_profile(
        client_id=client_id,
        client_secret=client_secret,
        code=code,
        code_verifier=pending.code_verifier,
        redirect_uri=redirect_uri,
    )
    google_id = profile.get("id")
    email = profile.get("email")
    if not google_id or not email:
        raise AuthError(ErrorKind.OAUTH_FAILED, detail="incomplete_profile")
    google_id = str(google_id)

    account, created = await _link_or_create(db, google_id=google_id, email=email)
    return OAuthLoginResult(
        account=account,
        created=created,
        has_passkey=await PasskeyRepository.exists_for_account(db, account.id),
        redirect_to=pending.redirect_to,
    )


async def _link_or_create(
    db: AsyncSession, *, google_id: str, email: str
) -> tuple[Account, bool]:
    account = await AccountRepository.get_by_google_id(db, google_id)
    if account is not None:
        return account, False

    account = await AccountRepository.get_by_email(db, email)
    if account is not None:
        if account.google_id is None:
            # Google vouches for the address, so linking also verifies it
            await AccountRepository.update(
                db, account.id, google_id=google_id, email_verified=True
            )
            await db.commit()
            logger.info("Linked Google account", extra={"account_id": account.id})
        return account, False

    try:
        account = await AccountRepository.create(
            db,
            email=email,
            google_id=google_id,
            email_verified=True,
            provider=_PROVIDER,
        )
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise AuthError(ErrorKind.OAUTH_FAILED, detail="account_conflict") from exc

    logger.info("Created account from Google", extra={"account_id": account.id})
    return account, True
