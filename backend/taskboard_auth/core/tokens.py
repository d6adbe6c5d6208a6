"""Single-use token helpers.

Random token generation, expiry timestamps and the fail-closed expiry check
shared by email verification, password reset, WebAuthn challenges and
OAuth state.
"""

import hmac
import secrets
from datetime import UTC, datetime, timedelta

# 32 bytes = 256 bits of randomness, rendered as 64 hex characters
_TOKEN_BYTES = 32


def generate_token() -> str:
    """Generate a cryptographically random token.

    Returns:
        64 lowercase hex characters (256 bits from the OS CSPRNG).
    """
    return secrets.token_hex(_TOKEN_BYTES)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC.

    SQLite round-trips timezone-aware columns as naive values; every
    timestamp this package writes is UTC, so a missing tzinfo means UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def generate_expiry(ttl: timedelta, *, now: datetime | None = None) -> datetime:
    """Return the instant ``ttl`` from now.

    Args:
        ttl: Lifetime of the token.
        now: Reference time (defaults to the current UTC time).

    Returns:
        Timezone-aware UTC expiry timestamp.
    """
    return (now or utc_now()) + ttl


def is_expired(expiry: datetime | None, *, now: datetime | None = None) -> bool:
    """Check whether an expiry timestamp has passed.

    A missing expiry is always expired (fail closed). The boundary instant
    itself is not expired: a token is expired only when ``now > expiry``.

    Args:
        expiry: Stored expiry timestamp, or None.
        now: Reference time (defaults to the current UTC time).

    Returns:
        True if the token must be rejected.
    """
    if expiry is None:
        return True
    return ensure_utc(now or utc_now()) > ensure_utc(expiry)


def constant_time_equals(a: str | bytes, b: str | bytes) -> bool:
    """Compare two secrets without leaking the mismatch position via timing."""
    if isinstance(a, str):
        a = a.encode()
    if isinstance(b, str):
        b = b.encode()
    return hmac.compare_digest(a, b)
