"""Abstract base class and types for email senders."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailResult:
    """Outcome of a send attempt.

    Attributes:
        success: True if the provider accepted the message.
        error: Provider or transport error description when success is False.
    """

    success: bool
    error: str | None = None


class EmailSender(ABC):
    """Outbound email collaborator.

    Implementations report failures through EmailResult instead of raising,
    so callers decide whether a failed send is fatal.
    """

    @abstractmethod
    async def send(self, *, to: str, subject: str, html: str) -> EmailResult:
        """Send one HTML email.

        Args:
            to: Recipient address.
            subject: Subject line.
            html: HTML body.

        Returns:
            EmailResult describing the outcome.
        """
        ...
