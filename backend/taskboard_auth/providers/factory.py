"""Factory functions for provider instances.

Providers are built once in create_app() from explicit Settings and stored on
app.state; tests inject mocks instead.
"""

import logging

from taskboard_auth.core.config import Settings
from taskboard_auth.providers.email.base import EmailSender
from taskboard_auth.providers.email.mock_adapter import MockEmailSender
from taskboard_auth.providers.email.resend_adapter import ResendEmailSender
from taskboard_auth.providers.webauthn.base import WebAuthnProvider
from taskboard_auth.providers.webauthn.py_webauthn_adapter import PyWebAuthnProvider

logger = logging.getLogger(__name__)


def get_email_sender(settings: Settings) -> EmailSender:
    """Build the email sender for the configured environment.

    Without a Resend API key mail is captured in memory instead of sent.
    Settings validation rejects a missing key in production.

    Args:
        settings: Validated application settings.

    Returns:
        EmailSender instance.
    """
    api_key = settings.resend_api_key.get_secret_value()
    if not api_key:
        logger.warning("RESEND_API_KEY not set; emails will not be delivered")
        return MockEmailSender()
    return ResendEmailSender(api_key=api_key, sender=settings.email_from)


def get_webauthn_provider() -> WebAuthnProvider:
    """Build the WebAuthn primitive backed by py_webauthn."""
    return PyWebAuthnProvider()
