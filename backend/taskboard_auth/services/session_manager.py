"""Session issuance, validation and sliding renewal.

Sessions are stateless signed tokens (see core.session_codec). Every
request re-checks signature, expiry and that the account still exists.
When less than the refresh threshold remains, a fresh token is handed
back for the HTTP layer to write to the cookie.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.core.config import Settings
from taskboard_auth.core.errors import AuthError, ErrorKind
from taskboard_auth.core.session_codec import decode_session, encode_session
from taskboard_auth.core.tokens import utc_now
from taskboard_auth.models.account import Account
from taskboard_auth.repositories.account_repository import AccountRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthUser:
    """Authenticated principal exposed to request handlers.

    Attributes:
        id: Account id.
        email: Current account email.
        email_verified: Whether the email is verified.
    """

    id: int
    email: str
    email_verified: bool

    @classmethod
    def from_account(cls, account: Account) -> "AuthUser":
        return cls(
            id=account.id,
            email=account.email,
            email_verified=account.email_verified,
        )


@dataclass(frozen=True)
class SessionResult:
    """Outcome of session validation.

    Attributes:
        user: Authenticated user, or None.
        new_token: Replacement token when the session was renewed.
    """

    user: AuthUser | None
    new_token: str | None = None


class SessionManager:
    """Issue and validate session tokens.

    Args:
        settings: Provides the signing secret, lifetime and refresh threshold.
    """

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.auth_secret.get_secret_value()
        self._ttl = settings.session_ttl
        self._refresh_threshold = settings.session_refresh_threshold
        self.cookie_name = settings.auth_cookie_name

    def create_session(self, account: Account | AuthUser) -> str:
        """Issue a fresh full-lifetime token for an account."""
        return encode_session(
            account_id=account.id,
            email=account.email,
            secret=self._secret,
            ttl=self._ttl,
        )

    async def get_user(self, db: AsyncSession, token: str | None) -> SessionResult:
        """Resolve a session token to a user.

        Any invalid, expired or orphaned token yields ``user=None``.

        Args:
            db: Async database session.
            token: Raw cookie value, or None.

        Returns:
            SessionResult. ``new_token`` is set when the remaining lifetime
            was below the refresh threshold.
        """
        claims = decode_session(token, secret=self._secret)
        if claims is None:
            return SessionResult(user=None)

        account = await AccountRepository.get_by_id(db, claims.account_id)
        if account is None:
            logger.info(
                "Session for missing account",
                extra={"account_id": claims.account_id},
            )
            return SessionResult(user=None)

        user = AuthUser.from_account(account)
        remaining = claims.remaining(now=utc_now())
        if remaining.total_seconds() > 0 and remaining < self._refresh_threshold:
            return SessionResult(user=user, new_token=self.create_session(account))
        return SessionResult(user=user)

    async def require_user(self, db: AsyncSession, token: str | None) -> SessionResult:
        """Like get_user(), but a missing user is an error.

        Raises:
            AuthError: AUTH_REQUIRED if the token does not resolve to a user.
        """
        result = await self.get_user(db, token)
        if result.user is None:
            raise AuthError(ErrorKind.AUTH_REQUIRED)
        return result

    async def require_verified_user(
        self, db: AsyncSession, token: str | None
    ) -> SessionResult:
        """Like require_user(), but the email must also be verified.

        Raises:
            AuthError: AUTH_REQUIRED without a user; VERIFICATION_PENDING
                if the account's email is unverified.
        """
        result = await self.require_user(db, token)
        if result.user is not None and not result.user.email_verified:
            raise AuthError(ErrorKind.VERIFICATION_PENDING)
        return result
