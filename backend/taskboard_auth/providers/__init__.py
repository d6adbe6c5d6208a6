"""Provider abstraction layer for external collaborators.

Exports:
    Factory functions for the email sender and WebAuthn primitive
"""

from taskboard_auth.providers.factory import get_email_sender, get_webauthn_provider

__all__ = [
    "get_email_sender",
    "get_webauthn_provider",
]
