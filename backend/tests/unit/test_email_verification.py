"""Tests for the email verification flow."""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.core.errors import AuthError, ErrorKind
from taskboard_auth.core.tokens import utc_now
from taskboard_auth.repositories.account_repository import AccountRepository
from taskboard_auth.services.email_verification import (
    request_verification,
    resend_verification,
    verify_email,
)
from tests.conftest import TEST_ORIGIN, make_account


async def _pending(db: AsyncSession):
    return await make_account(db, "pending@example.com", verified=False)


class TestRequestVerification:
    async def test_stores_token_and_sends_link(
        self, db_session: AsyncSession, mailer, settings
    ):
        account = await _pending(db_session)
        await request_verification(db_session, account, sender=mailer, settings=settings)

        assert account.verification_token is not None
        assert len(account.verification_token) == 64
        sent = mailer.last
        assert sent.to == "pending@example.com"
        assert (
            f"{TEST_ORIGIN}/verify-email?token={account.verification_token}" in sent.html
        )

    async def test_expiry_is_24_hours(self, db_session: AsyncSession, mailer, settings):
        account = await _pending(db_session)
        before = utc_now()
        await request_verification(db_session, account, sender=mailer, settings=settings)
        expires = account.verification_token_expires_at
        assert expires is not None
        delta = expires.replace(tzinfo=before.tzinfo) - before
        assert timedelta(hours=23, minutes=59) < delta <= timedelta(hours=24, seconds=5)

    async def test_new_token_overwrites_old(
        self, db_session: AsyncSession, mailer, settings
    ):
        account = await _pending(db_session)
        await request_verification(db_session, account, sender=mailer, settings=settings)
        first = account.verification_token
        await request_verification(db_session, account, sender=mailer, settings=settings)

        assert account.verification_token != first
        assert await AccountRepository.get_by_verification_token(db_session, first) is None

    async def test_delivery_failure_raises_but_keeps_token(
        self, db_session: AsyncSession, settings
    ):
        from taskboard_auth.providers.email.mock_adapter import MockEmailSender

        account = await _pending(db_session)
        with pytest.raises(AuthError) as exc_info:
            await request_verification(
                db_session, account, sender=MockEmailSender(fail=True), settings=settings
            )
        assert exc_info.value.kind == ErrorKind.EMAIL_DELIVERY_FAILED
        assert account.verification_token is not None


class TestResendVerification:
    async def test_unknown_email_is_silent(self, db_session, mailer, settings):
        await resend_verification(
            db_session, "ghost@example.com", sender=mailer, settings=settings
        )
        assert mailer.sent == []

    async def test_verified_account_gets_nothing(
        self, db_session, mailer, settings, verified_account
    ):
        await resend_verification(
            db_session, verified_account.email, sender=mailer, settings=settings
        )
        assert mailer.sent == []

    async def test_unverified_account_gets_mail(self, db_session, mailer, settings):
        await _pending(db_session)
        await resend_verification(
            db_session, "pending@example.com", sender=mailer, settings=settings
        )
        assert len(mailer.sent) == 1

    async def test_delivery_failure_is_swallowed(self, db_session, settings):
        from taskboard_auth.providers.email.mock_adapter import MockEmailSender

        await _pending(db_session)
        await resend_verification(
            db_session,
            "pending@example.com",
            sender=MockEmailSender(fail=True),
            settings=settings,
        )


class TestVerifyEmail:
    async def test_marks_verified_and_consumes_token(
        self, db_session: AsyncSession, mailer, settings
    ):
        account = await _pending(db_session)
        await request_verification(db_session, account, sender=mailer, settings=settings)
        token = account.verification_token

        verified = await verify_email(db_session, token)
        assert verified.email_verified is True
        assert verified.verification_token is None
        assert verified.verification_token_expires_at is None

        with pytest.raises(AuthError) as exc_info:
            await verify_email(db_session, token)
        assert exc_info.value.kind == ErrorKind.INVALID_TOKEN
        assert exc_info.value.detail == "not_found"

    async def test_unknown_token(self, db_session: AsyncSession):
        with pytest.raises(AuthError) as exc_info:
            await verify_email(db_session, "0" * 64)
        assert exc_info.value.kind == ErrorKind.INVALID_TOKEN

    async def test_expired_token_is_cleared(self, db_session: AsyncSession):
        account = await _pending(db_session)
        await AccountRepository.update(
            db_session,
            account.id,
            verification_token="e" * 64,
            verification_token_expires_at=utc_now() - timedelta(seconds=1),
        )
        await db_session.commit()

        with pytest.raises(AuthError) as exc_info:
            await verify_email(db_session, "e" * 64)
        assert exc_info.value.detail == "expired"

        refreshed = await AccountRepository.get_by_id(db_session, account.id)
        assert refreshed is not None
        assert refreshed.verification_token is None
        assert refreshed.verification_token_expires_at is None
        assert refreshed.email_verified is False
