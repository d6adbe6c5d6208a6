"""Mock email sender for testing.

Captures messages in memory instead of delivering them.
"""

from dataclasses import dataclass

from taskboard_auth.providers.email.base import EmailResult, EmailSender


@dataclass(frozen=True)
class SentEmail:
    """One captured message."""

    to: str
    subject: str
    html: str


class MockEmailSender(EmailSender):
    """In-memory sender.

    Attributes:
        sent: Every message passed to send(), in order.
        fail: When True, send() records nothing and reports failure.
    """

    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[SentEmail] = []
        self.fail = fail

    async def send(self, *, to: str, subject: str, html: str) -> EmailResult:
        if self.fail:
            return EmailResult(success=False, error="mock delivery failure")
        self.sent.append(SentEmail(to=to, subject=subject, html=html))
        return EmailResult(success=True)

    @property
    def last(self) -> SentEmail:
        """Most recent captured message.

        Raises:
            AssertionError: If nothing was sent.
        """
        if not self.sent:
            raise AssertionError("No emails were sent")
        return self.sent[-1]
