"""Passkey (WebAuthn) registration and authentication ceremonies.

Ceremony lifecycle: options requested -> challenge persisted -> response
received -> verified or rejected. The challenge row is deleted (and the
deletion committed) before the response is verified, so a challenge can be
answered at most once even when verification fails.

Challenges are found as "the newest row of the ceremony type" rather than by
a value echoed back by the client:
- Registration looks only at the account's own challenges.
- Authentication takes the newest authentication challenge overall and
  rejects it when it was issued to a different account. An unscoped
  challenge (email-less login) is accepted for any credential; this relies
  on each account holding at most one passkey.
"""

import json
import logging
from typing import Any
from urllib.parse import urlsplit

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.core.config import Settings
from taskboard_auth.core.errors import AuthError, ErrorKind
from taskboard_auth.core.tokens import generate_expiry, is_expired, utc_now
from taskboard_auth.models.account import Account
from taskboard_auth.models.passkey import Passkey
from taskboard_auth.models.webauthn_challenge import CeremonyType, WebAuthnChallenge
from taskboard_auth.providers.webauthn.base import (
    CredentialDescriptor,
    WebAuthnProvider,
    WebAuthnVerificationError,
)
from taskboard_auth.repositories.account_repository import AccountRepository
from taskboard_auth.repositories.challenge_repository import ChallengeRepository
from taskboard_auth.repositories.passkey_repository import PasskeyRepository

logger = logging.getLogger(__name__)

_LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


def resolve_rp_id(origin: str, settings: Settings) -> str:
    """Relying party id for a request origin.

    The configured WEBAUTHN_RP_ID wins. Otherwise the origin's host is used,
    with loopback addresses mapped to "localhost".

    Raises:
        AuthError: CONFIGURATION_ERROR if no id is configured and the origin
            has no host.
    """
    if settings.webauthn_rp_id:
        return settings.webauthn_rp_id
    host = urlsplit(origin).hostname
    if not host:
        raise AuthError(ErrorKind.CONFIGURATION_ERROR, detail="rp_id_unresolvable")
    if host in _LOOPBACK_HOSTS:
        return "localhost"
    return host


def _descriptor(passkey: Passkey) -> CredentialDescriptor:
    return CredentialDescriptor(id=passkey.credential_id, transports=passkey.transport_list)


async def _consume_challenge(db: AsyncSession, challenge: WebAuthnChallenge) -> None:
    """Delete a matched challenge, failing if it has already expired."""
    await ChallengeRepository.delete(db, challenge.id)
    await db.commit()
    if is_expired(challenge.expires_at):
        raise AuthError(ErrorKind.CHALLENGE_EXPIRED)


async def generate_registration_options(
    db: AsyncSession,
    account_id: int,
    account_email: str,
    *,
    webauthn: WebAuthnProvider,
    settings: Settings,
    origin: str,
) -> dict[str, Any]:
    """Build creation options for a signed-in account and store the challenge.

    Args:
        db: Async database session.
        account_id: Account registering the passkey.
        account_email: Shown by the authenticator as the account name.
        webauthn: WebAuthn primitive.
        settings: Application settings (RP name, challenge lifetime).
        origin: Request origin (for the RP id fallback).

    Returns:
        JSON-ready options for navigator.credentials.create().
    """
    existing = await PasskeyRepository.list_for_account(db, account_id)
    options = webauthn.generate_creation_options(
        rp_id=resolve_rp_id(origin, settings),
        rp_name=settings.webauthn_rp_name,
        user_id=str(account_id).encode("utf-8"),
        user_name=account_email,
        exclude_credentials=[_descriptor(p) for p in existing],
    )
    await ChallengeRepository.create(
        db,
        challenge=options.challenge,
        account_id=account_id,
        ceremony_type=CeremonyType.REGISTRATION,
        expires_at=generate_expiry(settings.webauthn_challenge_ttl),
    )
    await db.commit()
    return options.options


async def verify_registration(
    db: AsyncSession,
    account_id: int,
    response: dict[str, Any],
    origin: str,
    *,
    webauthn: WebAuthnProvider,
    settings: Settings,
) -> Passkey:
    """Verify an attestation and make it the account's only passkey.

    Args:
        db: Async database session.
        account_id: Signed-in account.
        response: Registration credential JSON from the browser.
        origin: Expected origin.
        webauthn: WebAuthn primitive.
        settings: Application settings.

    Returns:
        The stored Passkey.

    Raises:
        AuthError: NO_CHALLENGE, CHALLENGE_EXPIRED or VERIFICATION_FAILED.
    """
    challenge = await ChallengeRepository.get_latest_for_account(
        db, account_id=account_id, ceremony_type=CeremonyType.REGISTRATION
    )
    if challenge is None:
        raise AuthError(ErrorKind.NO_CHALLENGE, detail="registration")

    expected_challenge = challenge.challenge
    await _consume_challenge(db, challenge)

    try:
        result = webauthn.verify_attestation(
            response=response,
            expected_challenge=expected_challenge,
            expected_origin=origin,
            expected_rp_id=resolve_rp_id(origin, settings),
        )
    except WebAuthnVerificationError as exc:
        logger.info("Passkey registration failed", extra={"account_id": account_id})
        raise AuthError(ErrorKind.VERIFICATION_FAILED, detail=str(exc)) from exc

    credential_id = response.get("id")
    if not isinstance(credential_id, str) or not credential_id:
        credential_id = result.credential_id

    transports = (response.get("response") or {}).get("transports")
    transports_json = json.dumps(transports) if isinstance(transports, list) else None

    await PasskeyRepository.delete_all_for_account(db, account_id)
    try:
        passkey = await PasskeyRepository.create(
            db,
            account_id=account_id,
            credential_id=credential_id,
            public_key=result.public_key,
            counter=result.sign_count,
            transports=transports_json,
            aaguid=result.aaguid,
        )
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise AuthError(
            ErrorKind.VERIFICATION_FAILED, detail="credential_already_registered"
        ) from exc

    logger.info("Passkey registered", extra={"account_id": account_id})
    return passkey


async def generate_authentication_options(
    db: AsyncSession,
    email: str | None,
    origin: str,
    *,
    webauthn: WebAuthnProvider,
    settings: Settings,
) -> dict[str, Any]:
    """Build request options and store the challenge.

    With an email the allow-list holds that account's most recently used
    passkey (or nothing) and the challenge is bound to the account. Without
    one the allow-list is empty and the challenge is unscoped.

    Args:
        db: Async database session.
        email: Optional email the user typed.
        origin: Request origin (for the RP id fallback).
        webauthn: WebAuthn primitive.
        settings: Application settings.

    Returns:
        JSON-ready options for navigator.credentials.get().

    Raises:
        AuthError: ACCOUNT_NOT_FOUND if an email is given but unknown.
    """
    account_id: int | None = None
    allow: list[CredentialDescriptor] = []
    if email:
        account = await AccountRepository.get_by_email(db, email)
        if account is None:
            raise AuthError(ErrorKind.ACCOUNT_NOT_FOUND, detail="passkey_options")
        account_id = account.id
        passkey = await PasskeyRepository.get_most_recent_for_account(db, account.id)
        if passkey is not None:
            allow.append(_descriptor(passkey))

    options = webauthn.generate_request_options(
        rp_id=resolve_rp_id(origin, settings),
        allow_credentials=allow,
    )
    await ChallengeRepository.create(
        db,
        challenge=options.challenge,
        account_id=account_id,
        ceremony_type=CeremonyType.AUTHENTICATION,
        expires_at=generate_expiry(settings.webauthn_challenge_ttl),
    )
    await db.commit()
    return options.options


async def verify_authentication(
    db: AsyncSession,
    response: dict[str, Any],
    origin: str,
    *,
    webauthn: WebAuthnProvider,
    settings: Settings,
) -> Account:
    """Verify an assertion and return the authenticated account.

    Args:
        db: Async database session.
        response: Authentication credential JSON from the browser.
        origin: Expected origin.
        webauthn: WebAuthn primitive.
        settings: Application settings.

    Returns:
        The Account owning the credential.

    Raises:
        AuthError: PASSKEY_NOT_FOUND, NO_CHALLENGE, CHALLENGE_MISMATCH,
            CHALLENGE_EXPIRED, VERIFICATION_FAILED or ACCOUNT_NOT_FOUND.
    """
    credential_id = response.get("rawId")
    if not isinstance(credential_id, str) or not credential_id:
        raise AuthError(ErrorKind.PASSKEY_NOT_FOUND, detail="missing_raw_id")

    passkey = await PasskeyRepository.get_by_credential_id(db, credential_id)
    if passkey is None:
        raise AuthError(ErrorKind.PASSKEY_NOT_FOUND)

    challenge = await ChallengeRepository.get_latest_of_type(
        db, ceremony_type=CeremonyType.AUTHENTICATION
    )
    if challenge is None:
        raise AuthError(ErrorKind.NO_CHALLENGE, detail="authentication")

    # Left in place: it may belong to another user's in-flight login
    if challenge.account_id is not None and challenge.account_id != passkey.account_id:
        logger.warning(
            "Passkey challenge issued to a different account",
            extra={"account_id": passkey.account_id},
        )
        raise AuthError(ErrorKind.CHALLENGE_MISMATCH)

    expected_challenge = challenge.challenge
    await _consume_challenge(db, challenge)

    try:
        result = webauthn.verify_assertion(
            response=response,
            expected_challenge=expected_challenge,
            expected_origin=origin,
            expected_rp_id=resolve_rp_id(origin, settings),
            credential_public_key=passkey.public_key,
            credential_current_sign_count=passkey.counter,
        )
    except WebAuthnVerificationError as exc:
        logger.info(
            "Passkey authentication failed",
            extra={"account_id": passkey.account_id},
        )
        raise AuthError(ErrorKind.VERIFICATION_FAILED, detail=str(exc)) from exc

    await PasskeyRepository.record_use(
        db, passkey, counter=result.new_sign_count, used_at=utc_now()
    )
    await db.commit()

    account = await AccountRepository.get_by_id(db, passkey.account_id)
    if account is None:
        raise AuthError(ErrorKind.ACCOUNT_NOT_FOUND, detail="passkey_owner")
    return account


async def has_passkey(db: AsyncSession, email: str) -> bool:
    """Whether the account behind an email has a passkey (False if unknown)."""
    account = await AccountRepository.get_by_email(db, email)
    if account is None:
        return False
    return await PasskeyRepository.exists_for_account(db, account.id)
