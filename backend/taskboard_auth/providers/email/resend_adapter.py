"""Email sending via the Resend REST API."""

import logging

import httpx

from taskboard_auth.providers.email.base import EmailResult, EmailSender

logger = logging.getLogger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"
_RESEND_TIMEOUT = 10.0


class ResendEmailSender(EmailSender):
    """Send HTML mail with one HTTP POST per message.

    Attributes:
        api_key: Resend API key.
        sender: From address.
    """

    def __init__(
        self,
        *,
        api_key: str,
        sender: str,
        api_url: str = _RESEND_API_URL,
        timeout: float = _RESEND_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.sender = sender
        self._api_url = api_url
        self._timeout = timeout

    async def send(self, *, to: str, subject: str, html: str) -> EmailResult:
        """Post the message to Resend.

        HTTP status errors and transport errors are logged and returned as a
        failed result.
        """
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    self._api_url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "from": self.sender,
                        "to": to,
                        "subject": subject,
                        "html": html,
                    },
                    timeout=self._timeout,
                )
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Resend rejected email",
                extra={"status_code": exc.response.status_code},
            )
            return EmailResult(
                success=False,
                error=f"Resend returned HTTP {exc.response.status_code}",
            )
        except httpx.HTTPError as exc:
            logger.warning("Failed to reach Resend", exc_info=True)
            return EmailResult(success=False, error=type(exc).__name__)

        return EmailResult(success=True)
