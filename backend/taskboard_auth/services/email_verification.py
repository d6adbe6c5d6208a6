"""Email verification token lifecycle.

Issues, re-issues and consumes the verification token stored on the account.
One live token per account; issuing a new one overwrites the old one.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.core.config import Settings
from taskboard_auth.core.email_templates import build_link, verification_email
from taskboard_auth.core.errors import AuthError, ErrorKind
from taskboard_auth.core.tokens import generate_expiry, generate_token, is_expired
from taskboard_auth.models.account import Account
from taskboard_auth.providers.email.base import EmailSender
from taskboard_auth.repositories.account_repository import AccountRepository

logger = logging.getLogger(__name__)

_VERIFY_PATH = "/verify-email"


async def _issue_and_send(
    db: AsyncSession,
    account: Account,
    *,
    sender: EmailSender,
    settings: Settings,
) -> bool:
    token = generate_token()
    await AccountRepository.update(
        db,
        account.id,
        verification_token=token,
        verification_token_expires_at=generate_expiry(settings.verification_token_ttl),
    )
    # Token is durable before the mail leaves
    await db.commit()

    subject, html = verification_email(
        app_name=settings.app_name,
        verify_url=build_link(settings.app_base_url, _VERIFY_PATH, token),
    )
    result = await sender.send(to=account.email, subject=subject, html=html)
    if not result.success:
        logger.warning(
            "Verification email delivery failed",
            extra={"account_id": account.id, "error": result.error},
        )
    return result.success


async def request_verification(
    db: AsyncSession,
    account: Account,
    *,
    sender: EmailSender,
    settings: Settings,
) -> None:
    """Issue a fresh verification token and email it.

    Any previous token is overwritten. The new token is committed before
    sending; a failed send does not roll it back.

    Args:
        db: Async database session.
        account: Account to verify.
        sender: Email collaborator.
        settings: Application settings (token lifetime, base URL).

    Raises:
        AuthError: EMAIL_DELIVERY_FAILED if the sender reports failure.
    """
    delivered = await _issue_and_send(db, account, sender=sender, settings=settings)
    if not delivered:
        raise AuthError(ErrorKind.EMAIL_DELIVERY_FAILED, detail="verification")


async def resend_verification(
    db: AsyncSession,
    email: str,
    *,
    sender: EmailSender,
    settings: Settings,
) -> None:
    """Re-send the verification email if it makes sense to.

    Always returns normally so callers cannot learn whether the email is
    registered or already verified. Delivery failures are logged only.

    Args:
        db: Async database session.
        email: Address the user typed.
        sender: Email collaborator.
        settings: Application settings.
    """
    account = await AccountRepository.get_by_email(db, email)
    if account is None:
        logger.info("Verification resend for unknown email")
        return
    if account.email_verified:
        logger.info(
            "Verification resend for verified account",
            extra={"account_id": account.id},
        )
        return

    await _issue_and_send(db, account, sender=sender, settings=settings)


async def verify_email(db: AsyncSession, token: str) -> Account:
    """Consume a verification token and mark the account verified.

    Args:
        db: Async database session.
        token: Token from the emailed link.

    Returns:
        The verified Account.

    Raises:
        AuthError: INVALID_TOKEN if the token is unknown or expired. An
            expired token is cleared before raising.
    """
    account = await AccountRepository.get_by_verification_token(db, token)
    if account is None:
        raise AuthError(ErrorKind.INVALID_TOKEN, detail="not_found")

    if is_expired(account.verification_token_expires_at):
        await AccountRepository.update(
            db,
            account.id,
            verification_token=None,
            verification_token_expires_at=None,
        )
        await db.commit()
        logger.info("Expired verification token", extra={"account_id": account.id})
        raise AuthError(ErrorKind.INVALID_TOKEN, detail="expired")

    await AccountRepository.update(
        db,
        account.id,
        email_verified=True,
        verification_token=None,
        verification_token_expires_at=None,
    )
    await db.commit()
    logger.info("Email verified", extra={"account_id": account.id})
    return account
