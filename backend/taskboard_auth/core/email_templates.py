"""HTML bodies for transactional auth emails."""

from html import escape
from urllib.parse import quote


def build_link(base_url: str, path: str, token: str) -> str:
    """Build ``{base_url}{path}?token=<token>`` with the token URL-quoted."""
    return f"{base_url.rstrip('/')}{path}?token={quote(token, safe='')}"


def verification_email(*, app_name: str, verify_url: str) -> tuple[str, str]:
    """Subject and HTML body for the email-verification message."""
    url = escape(verify_url, quote=True)
    subject = f"Verify your email for {app_name}"
    html = (
        f"<p>Welcome to {escape(app_name)}!</p>"
        "<p>Confirm your email address by opening the link below:</p>"
        f'<p><a href="{url}">{url}</a></p>'
        "<p>This link expires in 24 hours. "
        "If you did not create an account, you can ignore this email.</p>"
    )
    return subject, html


def password_reset_email(*, app_name: str, reset_url: str) -> tuple[str, str]:
    """Subject and HTML body for the password-reset message."""
    url = escape(reset_url, quote=True)
    subject = f"Reset your {app_name} password"
    html = (
        "<p>We received a request to reset your password.</p>"
        f'<p><a href="{url}">{url}</a></p>'
        "<p>This link expires in 1 hour. "
        "If you did not request a reset, you can ignore this email.</p>"
    )
    return subject, html
