"""Password hashing, verification and policy.

Stored hash format: base64(salt || derived_key)
- salt: 16 random bytes
- derived_key: PBKDF2-HMAC-SHA256, 100,000 iterations, 32 bytes

The salt travels inside the stored value, so verification needs nothing but
the hash column.
"""

import base64
import binascii
import hashlib
import logging
import secrets

from taskboard_auth.core.errors import validation_error
from taskboard_auth.core.tokens import constant_time_equals

logger = logging.getLogger(__name__)

_ITERATIONS = 100_000
_SALT_BYTES = 16
_KEY_BYTES = 32
_HASH_NAME = "sha256"

_MAX_PASSWORD_LENGTH = 128


def _derive(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac(
        _HASH_NAME,
        password.encode("utf-8"),
        salt,
        _ITERATIONS,
        dklen=_KEY_BYTES,
    )


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt.

    Args:
        password: Plain-text password.

    Returns:
        Base64 string holding salt and derived key.
    """
    salt = secrets.token_bytes(_SALT_BYTES)
    return base64.b64encode(salt + _derive(password, salt)).decode("ascii")


def verify_password(password: str, stored_hash: str | None) -> bool:
    """Check a password against a stored hash.

    Never raises: a missing or malformed stored hash (bad base64, wrong
    length) simply fails verification.

    Args:
        password: Plain-text password to check.
        stored_hash: Value previously produced by hash_password().

    Returns:
        True if the password matches.
    """
    if not stored_hash:
        return False
    try:
        combined = base64.b64decode(stored_hash.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError):
        logger.warning("Malformed password hash encountered")
        return False

    if len(combined) != _SALT_BYTES + _KEY_BYTES:
        logger.warning("Password hash has unexpected length")
        return False

    salt = combined[:_SALT_BYTES]
    expected = combined[_SALT_BYTES:]
    return constant_time_equals(_derive(password, salt), expected)


# Pre-computed hash for timing-safe comparison on account-not-found.
# Security: login runs one full derivation whether or not the email exists,
# so response time does not reveal registered addresses.
DUMMY_HASH = "kVlVSf2L9rK4hX4q3m6bDwkMX1f6m6w4dJ7r0dS6r3QjQk3nq3o1rE2rPpeX0c9N"


def validate_password(password: str, *, min_length: int = 8) -> None:
    """Validate a new password against the policy.

    Args:
        password: Plain-text password to validate.
        min_length: Minimum accepted length.

    Raises:
        AuthError: VALIDATION_ERROR if the password is too short or too long.
    """
    if len(password) < min_length:
        raise validation_error(f"Password must be at least {min_length} characters")
    if len(password) > _MAX_PASSWORD_LENGTH:
        raise validation_error(
            f"Password must be at most {_MAX_PASSWORD_LENGTH} characters"
        )
