"""Password sign-up and sign-in."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.core.config import Settings
from taskboard_auth.core.errors import AuthError, ErrorKind
from taskboard_auth.core.passwords import (
    DUMMY_HASH,
    hash_password,
    validate_password,
    verify_password,
)
from taskboard_auth.models.account import Account
from taskboard_auth.providers.email.base import EmailSender
from taskboard_auth.repositories.account_repository import AccountRepository
from taskboard_auth.services.email_verification import request_verification

logger = logging.getLogger(__name__)


async def register_account(
    db: AsyncSession,
    email: str,
    password: str,
    *,
    sender: EmailSender,
    settings: Settings,
) -> Account:
    """Create an unverified password account and send the verification email.

    Args:
        db: Async database session.
        email: New account email.
        password: Plain-text password.
        sender: Email collaborator.
        settings: Application settings.

    Returns:
        The created Account.

    Raises:
        AuthError: VALIDATION_ERROR for a policy violation;
            EMAIL_ALREADY_REGISTERED for a duplicate email;
            EMAIL_DELIVERY_FAILED if the verification mail could not be sent
            (the account is kept).
    """
    validate_password(password, min_length=settings.password_min_length)

    if await AccountRepository.get_by_email(db, email) is not None:
        raise AuthError(ErrorKind.EMAIL_ALREADY_REGISTERED)

    try:
        account = await AccountRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            provider="password",
        )
        await db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent sign-up for the same email
        await db.rollback()
        raise AuthError(
            ErrorKind.EMAIL_ALREADY_REGISTERED, detail="integrity"
        ) from exc

    logger.info("Account registered", extra={"account_id": account.id})
    await request_verification(db, account, sender=sender, settings=settings)
    return account


async def authenticate_password(db: AsyncSession, email: str, password: str) -> Account:
    """Check email + password credentials.

    Args:
        db: Async database session.
        email: Email the user typed.
        password: Password the user typed.

    Returns:
        The authenticated Account.

    Raises:
        AuthError: INVALID_CREDENTIALS for an unknown email, an account
            without a password, or a wrong password; VERIFICATION_PENDING
            if the credentials are right but the email is unverified.
    """
    account = await AccountRepository.get_by_email(db, email)
    if account is None:
        # Same work as a real check so timing does not reveal registration
        verify_password(password, DUMMY_HASH)
        raise AuthError(ErrorKind.INVALID_CREDENTIALS, detail="unknown_email")

    if not account.has_password:
        verify_password(password, DUMMY_HASH)
        raise AuthError(ErrorKind.INVALID_CREDENTIALS, detail="no_password")

    if not verify_password(password, account.password_hash):
        logger.info("Password mismatch", extra={"account_id": account.id})
        raise AuthError(ErrorKind.INVALID_CREDENTIALS, detail="wrong_password")

    if not account.email_verified:
        raise AuthError(ErrorKind.VERIFICATION_PENDING)

    return account
