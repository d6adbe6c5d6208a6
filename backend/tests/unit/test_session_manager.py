"""Tests for SessionManager: validation, existence check and sliding renewal."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.core.errors import AuthError, ErrorKind
from taskboard_auth.core.session_codec import decode_session, encode_session
from taskboard_auth.core.tokens import utc_now
from taskboard_auth.models import Account
from taskboard_auth.services.session_manager import SessionManager
from tests.conftest import TEST_AUTH_SECRET, make_account


def _token_expiring_in(account: Account, remaining: timedelta) -> str:
    """Token issued so that ``remaining`` is left before expiry."""
    ttl = timedelta(days=7)
    return encode_session(
        account_id=account.id,
        email=account.email,
        secret=TEST_AUTH_SECRET,
        ttl=ttl,
        now=utc_now() - (ttl - remaining),
    )


class TestCreateSession:
    def test_token_decodes_to_account(self, session_manager: SessionManager, verified_account):
        token = session_manager.create_session(verified_account)
        claims = decode_session(token, secret=TEST_AUTH_SECRET)
        assert claims is not None
        assert claims.account_id == verified_account.id
        assert claims.remaining() > timedelta(days=6, hours=23)


class TestGetUser:
    async def test_valid_token(
        self, db_session: AsyncSession, session_manager: SessionManager, verified_account
    ):
        token = session_manager.create_session(verified_account)
        result = await session_manager.get_user(db_session, token)
        assert result.user is not None
        assert result.user.id == verified_account.id
        assert result.new_token is None

    async def test_missing_token(self, db_session: AsyncSession, session_manager):
        result = await session_manager.get_user(db_session, None)
        assert result.user is None
        assert result.new_token is None

    async def test_garbage_token(self, db_session: AsyncSession, session_manager):
        result = await session_manager.get_user(db_session, "garbage")
        assert result.user is None

    async def test_deleted_account_yields_no_user(
        self, db_session: AsyncSession, session_manager: SessionManager, verified_account
    ):
        """A valid signature is not enough; the account must still exist."""
        token = session_manager.create_session(verified_account)
        await db_session.delete(verified_account)
        await db_session.commit()

        result = await session_manager.get_user(db_session, token)
        assert result.user is None

    async def test_refreshes_below_threshold(
        self, db_session: AsyncSession, session_manager: SessionManager, verified_account
    ):
        token = _token_expiring_in(verified_account, timedelta(days=2))
        result = await session_manager.get_user(db_session, token)
        assert result.user is not None
        assert result.new_token is not None
        claims = decode_session(result.new_token, secret=TEST_AUTH_SECRET)
        assert claims is not None
        assert claims.remaining() > timedelta(days=6)

    async def test_no_refresh_above_threshold(
        self, db_session: AsyncSession, session_manager: SessionManager, verified_account
    ):
        token = _token_expiring_in(verified_account, timedelta(days=4))
        result = await session_manager.get_user(db_session, token)
        assert result.user is not None
        assert result.new_token is None

    async def test_expired_token_is_not_refreshed(
        self, db_session: AsyncSession, session_manager: SessionManager, verified_account
    ):
        token = _token_expiring_in(verified_account, timedelta(seconds=-10))
        result = await session_manager.get_user(db_session, token)
        assert result.user is None
        assert result.new_token is None

    async def test_refresh_uses_current_email(
        self, db_session: AsyncSession, session_manager: SessionManager, verified_account
    ):
        token = _token_expiring_in(verified_account, timedelta(days=1))
        with patch(
            "taskboard_auth.services.session_manager.encode_session",
            wraps=encode_session,
        ) as spy:
            await session_manager.get_user(db_session, token)
        assert spy.call_args.kwargs["email"] == "user@example.com"


class TestRequireUser:
    async def test_raises_auth_required(self, db_session: AsyncSession, session_manager):
        with pytest.raises(AuthError) as exc_info:
            await session_manager.require_user(db_session, None)
        assert exc_info.value.kind == ErrorKind.AUTH_REQUIRED

    async def test_verified_gate(self, db_session: AsyncSession, session_manager):
        pending = await make_account(db_session, "pending@example.com", verified=False)
        token = session_manager.create_session(pending)

        result = await session_manager.require_user(db_session, token)
        assert result.user is not None

        with pytest.raises(AuthError) as exc_info:
            await session_manager.require_verified_user(db_session, token)
        assert exc_info.value.kind == ErrorKind.VERIFICATION_PENDING

    async def test_verified_user_passes(
        self, db_session: AsyncSession, session_manager: SessionManager, verified_account
    ):
        token = session_manager.create_session(verified_account)
        result = await session_manager.require_verified_user(db_session, token)
        assert result.user is not None
        assert result.user.email_verified is True
