"""Mock WebAuthn primitive for testing.

Generates real random challenges but performs no cryptography: results
are scripted per test.
"""

import base64
import secrets
from typing import Any

from taskboard_auth.providers.webauthn.base import (
    AssertionResult,
    AttestationResult,
    CeremonyOptions,
    CredentialDescriptor,
    WebAuthnProvider,
    WebAuthnVerificationError,
)


def _random_challenge() -> str:
    return base64.urlsafe_b64encode(secrets.token_bytes(32)).rstrip(b"=").decode()


class MockWebAuthnProvider(WebAuthnProvider):
    """Scripted provider.

    Attributes:
        calls: Record of all method invocations for test assertions.
        attestation: Result returned by verify_attestation().
        assertion: Result returned by verify_assertion().
        fail_verification: When True, both verify methods raise
            WebAuthnVerificationError.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.attestation = AttestationResult(
            credential_id="mock-credential-id",
            public_key=b"mock-public-key",
            sign_count=0,
            aaguid="00000000-0000-0000-0000-000000000000",
        )
        self.assertion = AssertionResult(new_sign_count=1)
        self.fail_verification = False

    def generate_creation_options(
        self,
        *,
        rp_id: str,
        rp_name: str,
        user_id: bytes,
        user_name: str,
        exclude_credentials: list[CredentialDescriptor],
    ) -> CeremonyOptions:
        challenge = _random_challenge()
        self.calls.append(
            {
                "method": "generate_creation_options",
                "rp_id": rp_id,
                "rp_name": rp_name,
                "user_id": user_id,
                "user_name": user_name,
                "exclude_credentials": exclude_credentials,
            }
        )
        return CeremonyOptions(
            challenge=challenge,
            options={
                "challenge": challenge,
                "rp": {"id": rp_id, "name": rp_name},
                "user": {"name": user_name, "displayName": user_name},
                "excludeCredentials": [
                    {"id": c.id, "type": "public-key"} for c in exclude_credentials
                ],
            },
        )

    def generate_request_options(
        self,
        *,
        rp_id: str,
        allow_credentials: list[CredentialDescriptor],
    ) -> CeremonyOptions:
        challenge = _random_challenge()
        self.calls.append(
            {
                "method": "generate_request_options",
                "rp_id": rp_id,
                "allow_credentials": allow_credentials,
            }
        )
        return CeremonyOptions(
            challenge=challenge,
            options={
                "challenge": challenge,
                "rpId": rp_id,
                "allowCredentials": [
                    {"id": c.id, "type": "public-key"} for c in allow_credentials
                ],
            },
        )

    def verify_attestation(
        self,
        *,
        response: dict[str, Any],
        expected_challenge: str,
        expected_origin: str,
        expected_rp_id: str,
    ) -> AttestationResult:
        self.calls.append(
            {
                "method": "verify_attestation",
                "expected_challenge": expected_challenge,
                "expected_origin": expected_origin,
                "expected_rp_id": expected_rp_id,
            }
        )
        if self.fail_verification:
            raise WebAuthnVerificationError("mock attestation failure")
        return self.attestation

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
        self.calls.append(
            {
                "method": "verify_assertion",
                "expected_challenge": expected_challenge,
                "credential_public_key": credential_public_key,
                "credential_current_sign_count": credential_current_sign_count,
            }
        )
        if self.fail_verification:
            raise WebAuthnVerificationError("mock assertion failure")
        return self.assertion

    def methods_called(self) -> list[str]:
        """Names of the methods invoked so far, in order."""
        return [call["method"] for call in self.calls]
