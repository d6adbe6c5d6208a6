"""Password reset token lifecycle.

Request, verify and consume single-use reset tokens. The request path is
anti-enumeration: callers always see the same success shape.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.core.config import Settings
from taskboard_auth.core.email_templates import build_link, password_reset_email
from taskboard_auth.core.errors import AuthError, ErrorKind
from taskboard_auth.core.passwords import hash_password, validate_password
from taskboard_auth.core.tokens import generate_expiry, generate_token, is_expired
from taskboard_auth.providers.email.base import EmailSender
from taskboard_auth.repositories.account_repository import AccountRepository
from taskboard_auth.repositories.password_reset_token_repository import (
    PasswordResetTokenRepository,
)

logger = logging.getLogger(__name__)

_RESET_PATH = "/reset-password"


@dataclass(frozen=True)
class ResetTokenInfo:
    """Owner of a valid reset token.

    Attributes:
        account_id: Account the token belongs to.
        email: That account's email (shown on the reset form).
    """

    account_id: int
    email: str


async def request_password_reset(
    db: AsyncSession,
    email: str,
    *,
    sender: EmailSender,
    settings: Settings,
) -> None:
    """Issue a reset token and email the link, if the account can use one.

    Accounts that do not exist or have no password (OAuth/passkey only) get
    nothing: no row, no mail. Any outstanding token for the account is
    replaced in the same transaction. Delivery failure is logged, never
    raised.

    Args:
        db: Async database session.
        email: Address the user typed.
        sender: Email collaborator.
        settings: Application settings (token lifetime, base URL).
    """
    account = await AccountRepository.get_by_email(db, email)
    if account is None:
        logger.info("Password reset requested for unknown email")
        return
    if not account.has_password:
        logger.info(
            "Password reset requested for account without password",
            extra={"account_id": account.id},
        )
        return

    token = generate_token()
    await PasswordResetTokenRepository.delete_all_for_account(db, account.id)
    await PasswordResetTokenRepository.create(
        db,
        account_id=account.id,
        token=token,
        expires_at=generate_expiry(settings.password_reset_token_ttl),
    )
    await db.commit()

    subject, html = password_reset_email(
        app_name=settings.app_name,
        reset_url=build_link(settings.app_base_url, _RESET_PATH, token),
    )
    result = await sender.send(to=account.email, subject=subject, html=html)
    if not result.success:
        logger.warning(
            "Password reset email delivery failed",
            extra={"account_id": account.id, "error": result.error},
        )


async def verify_reset_token(db: AsyncSession, token: str) -> ResetTokenInfo:
    """Check a reset token without consuming it.

    Args:
        db: Async database session.
        token: Token from the reset link.

    Returns:
        ResetTokenInfo for the owning account.

    Raises:
        AuthError: INVALID_TOKEN if the token is unknown, expired (the row
            is deleted first) or its account no longer exists.
    """
    row = await PasswordResetTokenRepository.get_by_token(db, token)
    if row is None:
        raise AuthError(ErrorKind.INVALID_TOKEN, detail="not_found")

    if is_expired(row.expires_at):
        await PasswordResetTokenRepository.delete_by_token(db, token)
        await db.commit()
        logger.info("Expired reset token", extra={"account_id": row.account_id})
        raise AuthError(ErrorKind.INVALID_TOKEN, detail="expired")

    account = await AccountRepository.get_by_id(db, row.account_id)
    if account is None:
        raise AuthError(ErrorKind.INVALID_TOKEN, detail="account_missing")

    return ResetTokenInfo(account_id=account.id, email=account.email)


async def reset_password(
    db: AsyncSession,
    token: str,
    new_password: str,
    *,
    settings: Settings,
) -> None:
    """Set a new password and consume the reset token.

    Args:
        db: Async database session.
        token: Token from the reset link.
        new_password: Replacement password.
        settings: Application settings (password policy).

    Raises:
        AuthError: VALIDATION_ERROR if the password violates policy;
            INVALID_TOKEN if the token is not valid (including reuse).
    """
    validate_password(new_password, min_length=settings.password_min_length)
    info = await verify_reset_token(db, token)

    await AccountRepository.update(
        db,
        info.account_id,
        password_hash=hash_password(new_password),
    )
    await PasswordResetTokenRepository.delete_by_token(db, token)
    await db.commit()
    logger.info("Password reset completed", extra={"account_id": info.account_id})
