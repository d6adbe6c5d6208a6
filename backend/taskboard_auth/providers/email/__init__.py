"""Email provider module.

Exports:
    EmailSender: Abstract base class for outbound mail
    EmailResult: Delivery outcome
    ResendEmailSender: Resend HTTP implementation
    MockEmailSender: In-memory implementation for tests and local development
"""

from taskboard_auth.providers.email.base import EmailResult, EmailSender
from taskboard_auth.providers.email.mock_adapter import MockEmailSender
from taskboard_auth.providers.email.resend_adapter import ResendEmailSender

__all__ = [
    "EmailResult",
    "EmailSender",
    "MockEmailSender",
    "ResendEmailSender",
]
