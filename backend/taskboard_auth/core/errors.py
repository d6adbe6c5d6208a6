"""Authentication error kinds.

Errors are a tagged kind plus side tables, not a class per status code:
- ErrorKind names what went wrong.
- _STATUS_BY_KIND maps a kind to the HTTP status the API layer returns.
- _PUBLIC_MESSAGE_BY_KIND maps a kind to the only text a client ever sees.

AuthError is the single exception that carries a kind through the call
stack. Its ``detail`` distinguishes causes inside one kind (e.g. a token
that was not found vs. one that expired) and is for logs only.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Machine-readable error codes returned in the error envelope."""

    INVALID_TOKEN = "INVALID_TOKEN"
    NO_CHALLENGE = "NO_CHALLENGE"
    CHALLENGE_EXPIRED = "CHALLENGE_EXPIRED"
    CHALLENGE_MISMATCH = "CHALLENGE_MISMATCH"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    PASSKEY_NOT_FOUND = "PASSKEY_NOT_FOUND"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    VERIFICATION_PENDING = "VERIFICATION_PENDING"
    EMAIL_ALREADY_REGISTERED = "EMAIL_ALREADY_REGISTERED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    OAUTH_FAILED = "OAUTH_FAILED"
    EMAIL_DELIVERY_FAILED = "EMAIL_DELIVERY_FAILED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_TOKEN: 400,
    ErrorKind.NO_CHALLENGE: 400,
    ErrorKind.CHALLENGE_EXPIRED: 400,
    ErrorKind.CHALLENGE_MISMATCH: 400,
    ErrorKind.VERIFICATION_FAILED: 400,
    ErrorKind.ACCOUNT_NOT_FOUND: 401,
    ErrorKind.PASSKEY_NOT_FOUND: 401,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.AUTH_REQUIRED: 401,
    ErrorKind.VERIFICATION_PENDING: 403,
    ErrorKind.EMAIL_ALREADY_REGISTERED: 409,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.OAUTH_FAILED: 400,
    ErrorKind.EMAIL_DELIVERY_FAILED: 502,
    ErrorKind.CONFIGURATION_ERROR: 500,
}

# Security: passkey and lookup failures share one message so clients cannot
# tell "not found" from "expired" or "wrong account".
_PASSKEY_FAILED_MSG = "Passkey authentication failed"
_AUTH_FAILED_MSG = "Authentication failed"

_PUBLIC_MESSAGE_BY_KIND: dict[ErrorKind, str] = {
    ErrorKind.INVALID_TOKEN: "Invalid or expired token",
    ErrorKind.NO_CHALLENGE: _PASSKEY_FAILED_MSG,
    ErrorKind.CHALLENGE_EXPIRED: _PASSKEY_FAILED_MSG,
    ErrorKind.CHALLENGE_MISMATCH: _PASSKEY_FAILED_MSG,
    ErrorKind.VERIFICATION_FAILED: _PASSKEY_FAILED_MSG,
    ErrorKind.ACCOUNT_NOT_FOUND: _AUTH_FAILED_MSG,
    ErrorKind.PASSKEY_NOT_FOUND: _AUTH_FAILED_MSG,
    ErrorKind.INVALID_CREDENTIALS: "Invalid email or password",
    ErrorKind.AUTH_REQUIRED: "Authentication required",
    ErrorKind.VERIFICATION_PENDING: "Please verify your email address",
    ErrorKind.EMAIL_ALREADY_REGISTERED: "Email already exists",
    ErrorKind.VALIDATION_ERROR: "Validation failed",
    ErrorKind.OAUTH_FAILED: "OAuth authentication failed",
    ErrorKind.EMAIL_DELIVERY_FAILED: "Failed to send email",
    ErrorKind.CONFIGURATION_ERROR: "Service misconfigured",
}


def status_for(kind: ErrorKind) -> int:
    """Return the HTTP status code for an error kind."""
    return _STATUS_BY_KIND[kind]


def public_message_for(kind: ErrorKind) -> str:
    """Return the client-facing message for an error kind."""
    return _PUBLIC_MESSAGE_BY_KIND[kind]


class AuthError(Exception):
    """Failure raised by the authentication core.

    Attributes:
        kind: What went wrong (drives status code and public message).
        detail: Internal reason for logging. Never sent to clients.
        message: Client-facing message. Validation errors may carry a
            specific message; every other kind uses the generic one.
    """

    def __init__(
        self,
        kind: ErrorKind,
        *,
        detail: str | None = None,
        message: str | None = None,
    ) -> None:
        self.kind = kind
        self.detail = detail
        self.message = message or public_message_for(kind)
        super().__init__(f"{kind}: {detail}" if detail else str(kind))

    @property
    def status_code(self) -> int:
        """HTTP status code for this error."""
        return status_for(self.kind)


def validation_error(message: str) -> AuthError:
    """Build a VALIDATION_ERROR whose message is safe to show to the client."""
    return AuthError(ErrorKind.VALIDATION_ERROR, detail=message, message=message)
