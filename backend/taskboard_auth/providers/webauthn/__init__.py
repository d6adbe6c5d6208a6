"""WebAuthn provider module.

Exports:
    WebAuthnProvider: Abstract base class for the ceremony primitive
    CeremonyOptions, CredentialDescriptor: Options types
    AttestationResult, AssertionResult: Verification results
    WebAuthnVerificationError: Raised when a response does not verify
    PyWebAuthnProvider: py_webauthn implementation
    MockWebAuthnProvider: Scripted implementation for tests
"""

from taskboard_auth.providers.webauthn.base import (
    AssertionResult,
    AttestationResult,
    CeremonyOptions,
    CredentialDescriptor,
    WebAuthnProvider,
    WebAuthnVerificationError,
)
from taskboard_auth.providers.webauthn.mock_adapter import MockWebAuthnProvider
from taskboard_auth.providers.webauthn.py_webauthn_adapter import PyWebAuthnProvider

__all__ = [
    "AssertionResult",
    "AttestationResult",
    "CeremonyOptions",
    "CredentialDescriptor",
    "MockWebAuthnProvider",
    "PyWebAuthnProvider",
    "WebAuthnProvider",
    "WebAuthnVerificationError",
]
