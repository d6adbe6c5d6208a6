"""Signed session token codec.

Sessions are compact HS256 JWTs: base64url(header).base64url(payload).
base64url(HMAC-SHA256 signature). Nothing is stored server-side; the token
carries the account id, email and an absolute expiry.

Verification uses PyJWT, which recomputes the MAC over ``header.payload``
and compares it in constant time before any claim is trusted.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

from taskboard_auth.core.tokens import utc_now

_ALGORITHM = "HS256"

# Default session lifetime: 7 days
DEFAULT_SESSION_TTL = timedelta(days=7)

_REQUIRED_CLAIMS = ["sub", "email", "exp", "iat"]


@dataclass(frozen=True)
class SessionClaims:
    """Decoded, verified session payload.

    Attributes:
        account_id: Numeric account id (``sub`` claim).
        email: Account email at issuance time.
        issued_at: ``iat`` claim.
        expires_at: ``exp`` claim.
    """

    account_id: int
    email: str
    issued_at: datetime
    expires_at: datetime

    def remaining(self, *, now: datetime | None = None) -> timedelta:
        """Time left before the token expires (negative once expired)."""
        return self.expires_at - (now or utc_now())


def encode_session(
    *,
    account_id: int,
    email: str,
    secret: str,
    ttl: timedelta = DEFAULT_SESSION_TTL,
    now: datetime | None = None,
) -> str:
    """Create a signed session token.

    Args:
        account_id: Account primary key.
        email: Account email address.
        secret: HMAC signing secret.
        ttl: Lifetime of the token. Defaults to 7 days.
        now: Issuance time (defaults to the current UTC time).

    Returns:
        Encoded token string ``header.payload.signature``.
    """
    issued = now or utc_now()
    payload = {
        "sub": str(account_id),
        "email": email,
        "iat": issued,
        "exp": issued + ttl,
    }
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def decode_session(token: str | None, *, secret: str) -> SessionClaims | None:
    """Verify a session token and return its claims.

    Every failure (missing token, malformed segments, bad signature, expired,
    missing or mistyped claims) returns None. Callers cannot tell which check
    failed.

    Args:
        token: Raw token from the cookie, or None.
        secret: HMAC signing secret.

    Returns:
        SessionClaims if the token is authentic and unexpired, else None.
    """
    if not token:
        return None

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[_ALGORITHM],
            options={"require": _REQUIRED_CLAIMS},
        )
        account_id = int(payload["sub"])
        email = payload["email"]
        if not isinstance(email, str):
            return None
        return SessionClaims(
            account_id=account_id,
            email=email,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
        )
    except (jwt.InvalidTokenError, ValueError, TypeError):
        return None
