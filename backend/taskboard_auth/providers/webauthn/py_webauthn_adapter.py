"""WebAuthn primitive backed by the py_webauthn library."""

import json
import logging
from typing import Any

from webauthn import (
    generate_authentication_options,
    generate_registration_options,
    options_to_json,
    verify_authentication_response,
    verify_registration_response,
)
from webauthn.helpers import base64url_to_bytes, bytes_to_base64url
from webauthn.helpers.exceptions import WebAuthnException
from webauthn.helpers.structs import (
    AuthenticatorSelectionCriteria,
    AuthenticatorTransport,
    PublicKeyCredentialDescriptor,
    ResidentKeyRequirement,
    UserVerificationRequirement,
)

from taskboard_auth.providers.webauthn.base import (
    AssertionResult,
    AttestationResult,
    CeremonyOptions,
    CredentialDescriptor,
    WebAuthnProvider,
    WebAuthnVerificationError,
)

logger = logging.getLogger(__name__)

_KNOWN_TRANSPORTS = frozenset(t.value for t in AuthenticatorTransport)


def _to_descriptor(credential: CredentialDescriptor) -> PublicKeyCredentialDescriptor:
    transports = None
    if credential.transports:
        # Unknown hints from newer browsers are dropped rather than rejected
        transports = [
            AuthenticatorTransport(t)
            for t in credential.transports
            if t in _KNOWN_TRANSPORTS
        ]
    return PublicKeyCredentialDescriptor(
        id=base64url_to_bytes(credential.id),
        transports=transports,
    )


def _options_dict(options: Any) -> dict[str, Any]:
    result: dict[str, Any] = json.loads(options_to_json(options))
    return result


class PyWebAuthnProvider(WebAuthnProvider):
    """Ceremony primitive using py_webauthn.

    User verification is "preferred" for both ceremonies, so verification
    does not require the UV flag.
    """

    def generate_creation_options(
        self,
        *,
        rp_id: str,
        rp_name: str,
        user_id: bytes,
        user_name: str,
        exclude_credentials: list[CredentialDescriptor],
    ) -> CeremonyOptions:
        options = generate_registration_options(
            rp_id=rp_id,
            rp_name=rp_name,
            user_id=user_id,
            user_name=user_name,
            exclude_credentials=[_to_descriptor(c) for c in exclude_credentials],
            authenticator_selection=AuthenticatorSelectionCriteria(
                resident_key=ResidentKeyRequirement.PREFERRED,
                user_verification=UserVerificationRequirement.PREFERRED,
            ),
        )
        return CeremonyOptions(
            challenge=bytes_to_base64url(options.challenge),
            options=_options_dict(options),
        )

    def generate_request_options(
        self,
        *,
        rp_id: str,
        allow_credentials: list[CredentialDescriptor],
    ) -> CeremonyOptions:
        options = generate_authentication_options(
            rp_id=rp_id,
            allow_credentials=[_to_descriptor(c) for c in allow_credentials],
            user_verification=UserVerificationRequirement.PREFERRED,
        )
        return CeremonyOptions(
            challenge=bytes_to_base64url(options.challenge),
            options=_options_dict(options),
        )

    def verify_attestation(
        self,
        *,
        response: dict[str, Any],
        expected_challenge: str,
        expected_origin: str,
        expected_rp_id: str,
    ) -> AttestationResult:
        try:
            verified = verify_registration_response(
                credential=response,
                expected_challenge=base64url_to_bytes(expected_challenge),
                expected_origin=expected_origin,
                expected_rp_id=expected_rp_id,
                require_user_verification=False,
            )
        except (WebAuthnException, KeyError, TypeError, ValueError) as exc:
            logger.info(
                "Registration response rejected",
                extra={"reason": type(exc).__name__},
            )
            raise WebAuthnVerificationError(str(exc)) from exc

        return AttestationResult(
            credential_id=bytes_to_base64url(verified.credential_id),
            public_key=verified.credential_public_key,
            sign_count=verified.sign_count,
            aaguid=verified.aaguid or None,
        )

    def verify_assertion(
        self,
        *,
        response: dict[str, Any],
        expected_challenge: str,
        expected_origin: str,
        expected_rp_id: str,
        credential_public_key: bytes,
        credential_current_sign_count: int,
    ) -> AssertionResult:
        try:
            verified = verify_authentication_response(
                credential=response,
                expected_challenge=base64url_to_bytes(expected_challenge),
                expected_origin=expected_origin,
                expected_rp_id=expected_rp_id,
                credential_public_key=credential_public_key,
                credential_current_sign_count=credential_current_sign_count,
                require_user_verification=False,
            )
        except (WebAuthnException, KeyError, TypeError, ValueError) as exc:
            logger.info(
                "Authentication response rejected",
                extra={"reason": type(exc).__name__},
            )
            raise WebAuthnVerificationError(str(exc)) from exc

        return AssertionResult(new_sign_count=verified.new_sign_count)
