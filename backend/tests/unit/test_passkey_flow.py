"""Tests for the passkey registration and authentication ceremonies.

The WebAuthn primitive is the scripted MockWebAuthnProvider; these tests
cover challenge binding, single use, expiry and credential persistence.
"""

import json
from datetime import timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.core.errors import AuthError, ErrorKind
from taskboard_auth.core.tokens import ensure_utc, utc_now
from taskboard_auth.models import WebAuthnChallenge
from taskboard_auth.models.webauthn_challenge import CeremonyType
from taskboard_auth.providers.webauthn.base import AssertionResult, AttestationResult
from taskboard_auth.repositories.challenge_repository import ChallengeRepository
from taskboard_auth.repositories.passkey_repository import PasskeyRepository
from taskboard_auth.services import passkey as passkey_service
from tests.conftest import TEST_ORIGIN, make_account


def _registration_response(credential_id: str = "cred-1") -> dict:
    return {
        "id": credential_id,
        "rawId": credential_id,
        "type": "public-key",
        "response": {
            "clientDataJSON": "e30",
            "attestationObject": "o2M",
            "transports": ["internal", "hybrid"],
        },
    }


def _assertion_response(credential_id: str = "cred-1") -> dict:
    return {
        "id": credential_id,
        "rawId": credential_id,
        "type": "public-key",
        "response": {
            "clientDataJSON": "e30",
            "authenticatorData": "AA",
            "signature": "AA",
        },
    }


async def _register(db, account, webauthn, settings, credential_id="cred-1"):
    webauthn.attestation = AttestationResult(
        credential_id=credential_id,
        public_key=b"pk-" + credential_id.encode(),
        sign_count=0,
        aaguid="aaguid-1",
    )
    await passkey_service.generate_registration_options(
        db, account.id, account.email, webauthn=webauthn, settings=settings, origin=TEST_ORIGIN
    )
    return await passkey_service.verify_registration(
        db,
        account.id,
        _registration_response(credential_id),
        TEST_ORIGIN,
        webauthn=webauthn,
        settings=settings,
    )


async def _expire_all_challenges(db: AsyncSession) -> None:
    await db.execute(
        update(WebAuthnChallenge).values(expires_at=utc_now() - timedelta(seconds=1))
    )
    await db.commit()


class TestResolveRpId:
    def test_loopback_maps_to_localhost(self, settings):
        assert passkey_service.resolve_rp_id("http://127.0.0.1:5173", settings) == "localhost"

    def test_uses_origin_host(self, settings):
        assert (
            passkey_service.resolve_rp_id("https://tasks.example.com", settings)
            == "tasks.example.com"
        )

    def test_configured_id_wins(self, settings):
        configured = settings.model_copy(update={"webauthn_rp_id": "example.com"})
        assert (
            passkey_service.resolve_rp_id("https://tasks.example.com", configured)
            == "example.com"
        )


class TestRegistration:
    async def test_options_persist_scoped_challenge(
        self, db_session, webauthn, settings, verified_account
    ):
        options = await passkey_service.generate_registration_options(
            db_session,
            verified_account.id,
            verified_account.email,
            webauthn=webauthn,
            settings=settings,
            origin=TEST_ORIGIN,
        )
        challenge = await ChallengeRepository.get_latest_for_account(
            db_session,
            account_id=verified_account.id,
            ceremony_type=CeremonyType.REGISTRATION,
        )
        assert challenge is not None
        assert challenge.challenge == options["challenge"]
        assert options["rp"] == {"id": "localhost", "name": "Daily Tasks"}
        delta = ensure_utc(challenge.expires_at) - utc_now()
        assert timedelta(minutes=4) < delta <= timedelta(minutes=5)
        call = webauthn.calls[0]
        assert call["user_id"] == str(verified_account.id).encode()

    async def test_stores_credential(self, db_session, webauthn, settings, verified_account):
        passkey = await _register(db_session, verified_account, webauthn, settings)
        assert passkey.credential_id == "cred-1"
        assert passkey.public_key == b"pk-cred-1"
        assert passkey.counter == 0
        assert passkey.aaguid == "aaguid-1"
        assert json.loads(passkey.transports) == ["internal", "hybrid"]

    async def test_existing_passkey_is_excluded_then_replaced(
        self, db_session, webauthn, settings, verified_account
    ):
        """At most one passkey per account."""
        await _register(db_session, verified_account, webauthn, settings, "cred-1")
        await _register(db_session, verified_account, webauthn, settings, "cred-2")

        excluded = webauthn.calls[-2]["exclude_credentials"]
        assert [c.id for c in excluded] == ["cred-1"]
        assert excluded[0].transports == ["internal", "hybrid"]

        passkeys = await PasskeyRepository.list_for_account(db_session, verified_account.id)
        assert [p.credential_id for p in passkeys] == ["cred-2"]

    async def test_challenge_is_single_use(
        self, db_session, webauthn, settings, verified_account
    ):
        await _register(db_session, verified_account, webauthn, settings)
        with pytest.raises(AuthError) as exc_info:
            await passkey_service.verify_registration(
                db_session,
                verified_account.id,
                _registration_response(),
                TEST_ORIGIN,
                webauthn=webauthn,
                settings=settings,
            )
        assert exc_info.value.kind == ErrorKind.NO_CHALLENGE

    async def test_failed_verification_still_consumes_challenge(
        self, db_session, webauthn, settings, verified_account
    ):
        await passkey_service.generate_registration_options(
            db_session,
            verified_account.id,
            verified_account.email,
            webauthn=webauthn,
            settings=settings,
            origin=TEST_ORIGIN,
        )
        webauthn.fail_verification = True
        with pytest.raises(AuthError) as exc_info:
            await passkey_service.verify_registration(
                db_session,
                verified_account.id,
                _registration_response(),
                TEST_ORIGIN,
                webauthn=webauthn,
                settings=settings,
            )
        assert exc_info.value.kind == ErrorKind.VERIFICATION_FAILED
        assert (
            await ChallengeRepository.get_latest_of_type(
                db_session, ceremony_type=CeremonyType.REGISTRATION
            )
            is None
        )
        assert not await PasskeyRepository.exists_for_account(
            db_session, verified_account.id
        )

    async def test_expired_challenge(self, db_session, webauthn, settings, verified_account):
        await passkey_service.generate_registration_options(
            db_session,
            verified_account.id,
            verified_account.email,
            webauthn=webauthn,
            settings=settings,
            origin=TEST_ORIGIN,
        )
        await _expire_all_challenges(db_session)

        with pytest.raises(AuthError) as exc_info:
            await passkey_service.verify_registration(
                db_session,
                verified_account.id,
                _registration_response(),
                TEST_ORIGIN,
                webauthn=webauthn,
                settings=settings,
            )
        assert exc_info.value.kind == ErrorKind.CHALLENGE_EXPIRED
        assert "verify_attestation" not in webauthn.methods_called()
        assert (
            await ChallengeRepository.get_latest_of_type(
                db_session, ceremony_type=CeremonyType.REGISTRATION
            )
            is None
        )

    async def test_other_accounts_challenge_is_not_used(
        self, db_session, webauthn, settings, verified_account
    ):
        other = await make_account(db_session, "other@example.com")
        await passkey_service.generate_registration_options(
            db_session,
            other.id,
            other.email,
            webauthn=webauthn,
            settings=settings,
            origin=TEST_ORIGIN,
        )
        with pytest.raises(AuthError) as exc_info:
            await passkey_service.verify_registration(
                db_session,
                verified_account.id,
                _registration_response(),
                TEST_ORIGIN,
                webauthn=webauthn,
                settings=settings,
            )
        assert exc_info.value.kind == ErrorKind.NO_CHALLENGE


class TestAuthenticationOptions:
    async def test_with_email_allows_only_that_passkey(
        self, db_session, webauthn, settings, verified_account
    ):
        await _register(db_session, verified_account, webauthn, settings)
        options = await passkey_service.generate_authentication_options(
            db_session, verified_account.email, TEST_ORIGIN, webauthn=webauthn, settings=settings
        )
        assert [c["id"] for c in options["allowCredentials"]] == ["cred-1"]
        challenge = await ChallengeRepository.get_latest_of_type(
            db_session, ceremony_type=CeremonyType.AUTHENTICATION
        )
        assert challenge is not None
        assert challenge.account_id == verified_account.id

    async def test_with_email_but_no_passkey(
        self, db_session, webauthn, settings, verified_account
    ):
        options = await passkey_service.generate_authentication_options(
            db_session, verified_account.email, TEST_ORIGIN, webauthn=webauthn, settings=settings
        )
        assert options["allowCredentials"] == []

    async def test_without_email_is_unscoped(self, db_session, webauthn, settings):
        options = await passkey_service.generate_authentication_options(
            db_session, None, TEST_ORIGIN, webauthn=webauthn, settings=settings
        )
        assert options["allowCredentials"] == []
        challenge = await ChallengeRepository.get_latest_of_type(
            db_session, ceremony_type=CeremonyType.AUTHENTICATION
        )
        assert challenge is not None
        assert challenge.account_id is None

    async def test_unknown_email(self, db_session, webauthn, settings):
        with pytest.raises(AuthError) as exc_info:
            await passkey_service.generate_authentication_options(
                db_session, "ghost@example.com", TEST_ORIGIN, webauthn=webauthn, settings=settings
            )
        assert exc_info.value.kind == ErrorKind.ACCOUNT_NOT_FOUND


class TestVerifyAuthentication:
    async def test_success_updates_counter_and_last_used(
        self, db_session, webauthn, settings, verified_account
    ):
        await _register(db_session, verified_account, webauthn, settings)
        await passkey_service.generate_authentication_options(
            db_session, verified_account.email, TEST_ORIGIN, webauthn=webauthn, settings=settings
        )
        webauthn.assertion = AssertionResult(new_sign_count=7)

        account = await passkey_service.verify_authentication(
            db_session, _assertion_response(), TEST_ORIGIN, webauthn=webauthn, settings=settings
        )
        assert account.id == verified_account.id

        call = webauthn.calls[-1]
        assert call["credential_public_key"] == b"pk-cred-1"
        assert call["credential_current_sign_count"] == 0

        passkey = await PasskeyRepository.get_by_credential_id(db_session, "cred-1")
        assert passkey is not None
        assert passkey.counter == 7
        assert passkey.last_used_at is not None

    async def test_emailless_login(self, db_session, webauthn, settings, verified_account):
        await _register(db_session, verified_account, webauthn, settings)
        await passkey_service.generate_authentication_options(
            db_session, None, TEST_ORIGIN, webauthn=webauthn, settings=settings
        )
        account = await passkey_service.verify_authentication(
            db_session, _assertion_response(), TEST_ORIGIN, webauthn=webauthn, settings=settings
        )
        assert account.id == verified_account.id

    async def test_unknown_credential(self, db_session, webauthn, settings):
        with pytest.raises(AuthError) as exc_info:
            await passkey_service.verify_authentication(
                db_session,
                _assertion_response("nope"),
                TEST_ORIGIN,
                webauthn=webauthn,
                settings=settings,
            )
        assert exc_info.value.kind == ErrorKind.PASSKEY_NOT_FOUND

    async def test_no_challenge(self, db_session, webauthn, settings, verified_account):
        await _register(db_session, verified_account, webauthn, settings)
        with pytest.raises(AuthError) as exc_info:
            await passkey_service.verify_authentication(
                db_session, _assertion_response(), TEST_ORIGIN, webauthn=webauthn, settings=settings
            )
        assert exc_info.value.kind == ErrorKind.NO_CHALLENGE

    async def test_cross_account_challenge_is_rejected_before_crypto(
        self, db_session, webauthn, settings, verified_account
    ):
        """A challenge issued to Bob cannot be answered with Alice's passkey."""
        bob = await make_account(db_session, "bob@example.com")
        await _register(db_session, verified_account, webauthn, settings, "alice-cred")
        await _register(db_session, bob, webauthn, settings, "bob-cred")
        await passkey_service.generate_authentication_options(
            db_session, bob.email, TEST_ORIGIN, webauthn=webauthn, settings=settings
        )

        with pytest.raises(AuthError) as exc_info:
            await passkey_service.verify_authentication(
                db_session,
                _assertion_response("alice-cred"),
                TEST_ORIGIN,
                webauthn=webauthn,
                settings=settings,
            )
        assert exc_info.value.kind == ErrorKind.CHALLENGE_MISMATCH
        assert "verify_assertion" not in webauthn.methods_called()
        # Bob's challenge stays available for Bob
        assert await ChallengeRepository.get_latest_of_type(
            db_session, ceremony_type=CeremonyType.AUTHENTICATION
        )

    async def test_expired_challenge(self, db_session, webauthn, settings, verified_account):
        await _register(db_session, verified_account, webauthn, settings)
        await passkey_service.generate_authentication_options(
            db_session, verified_account.email, TEST_ORIGIN, webauthn=webauthn, settings=settings
        )
        await _expire_all_challenges(db_session)

        with pytest.raises(AuthError) as exc_info:
            await passkey_service.verify_authentication(
                db_session, _assertion_response(), TEST_ORIGIN, webauthn=webauthn, settings=settings
            )
        assert exc_info.value.kind == ErrorKind.CHALLENGE_EXPIRED
        assert "verify_assertion" not in webauthn.methods_called()

    async def test_replay_fails(self, db_session, webauthn, settings, verified_account):
        await _register(db_session, verified_account, webauthn, settings)
        await passkey_service.generate_authentication_options(
            db_session, verified_account.email, TEST_ORIGIN, webauthn=webauthn, settings=settings
        )
        await passkey_service.verify_authentication(
            db_session, _assertion_response(), TEST_ORIGIN, webauthn=webauthn, settings=settings
        )
        with pytest.raises(AuthError) as exc_info:
            await passkey_service.verify_authentication(
                db_session, _assertion_response(), TEST_ORIGIN, webauthn=webauthn, settings=settings
            )
        assert exc_info.value.kind == ErrorKind.NO_CHALLENGE

    async def test_verification_failure(
        self, db_session, webauthn, settings, verified_account
    ):
        await _register(db_session, verified_account, webauthn, settings)
        await passkey_service.generate_authentication_options(
            db_session, verified_account.email, TEST_ORIGIN, webauthn=webauthn, settings=settings
        )
        webauthn.fail_verification = True
        with pytest.raises(AuthError) as exc_info:
            await passkey_service.verify_authentication(
                db_session, _assertion_response(), TEST_ORIGIN, webauthn=webauthn, settings=settings
            )
        assert exc_info.value.kind == ErrorKind.VERIFICATION_FAILED
        passkey = await PasskeyRepository.get_by_credential_id(db_session, "cred-1")
        assert passkey is not None
        assert passkey.counter == 0


class TestHasPasskey:
    async def test_reports_enrolment(self, db_session, webauthn, settings, verified_account):
        assert await passkey_service.has_passkey(db_session, verified_account.email) is False
        await _register(db_session, verified_account, webauthn, settings)
        assert await passkey_service.has_passkey(db_session, verified_account.email) is True

    async def test_unknown_email(self, db_session):
        assert await passkey_service.has_passkey(db_session, "ghost@example.com") is False
