"""SQLAlchemy ORM models for the task board authentication core.

All models are exported from this module for convenient imports:
    from taskboard_auth.models import Account, Passkey, ...

Models:
- account.py: Account (identity root, holds the email-verification token)
- passkey.py: Passkey (WebAuthn credential, at most one per account)
- webauthn_challenge.py: WebAuthnChallenge, CeremonyType
- password_reset_token.py: PasswordResetToken
- oauth_state.py: OAuthState (OAuth CSRF state + PKCE verifier)
"""

from taskboard_auth.models.account import Account
from taskboard_auth.models.base import Base, CreatedAtMixin
from taskboard_auth.models.oauth_state import OAuthState
from taskboard_auth.models.passkey import Passkey
from taskboard_auth.models.password_reset_token import PasswordResetToken
from taskboard_auth.models.webauthn_challenge import CeremonyType, WebAuthnChallenge

__all__ = [
    # Base classes
    "Base",
    "CreatedAtMixin",
    # Identity
    "Account",
    "Passkey",
    # Ephemeral auth state
    "CeremonyType",
    "WebAuthnChallenge",
    "PasswordResetToken",
    "OAuthState",
]
