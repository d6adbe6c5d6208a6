"""Abstract base class and types for the WebAuthn primitive.

The primitive owns the cryptography (options generation, attestation and
assertion verification). Challenge storage, single-use enforcement and
credential persistence belong to the passkey flow.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


class WebAuthnVerificationError(Exception):
    """A client response failed verification or could not be parsed."""


@dataclass(frozen=True)
class CredentialDescriptor:
    """Reference to a stored credential for allow/exclude lists.

    Attributes:
        id: Base64url credential id.
        transports: Transport hints, if known.
    """

    id: str
    transports: list[str] | None = None


@dataclass(frozen=True)
class CeremonyOptions:
    """Options to hand to navigator.credentials.create()/get().

    Attributes:
        challenge: Base64url challenge embedded in the options.
        options: JSON-ready options dict returned to the browser.
    """

    challenge: str
    options: dict[str, Any]


@dataclass(frozen=True)
class AttestationResult:
    """Verified registration.

    Attributes:
        credential_id: Base64url credential id.
        public_key: COSE public key bytes.
        sign_count: Initial signature counter.
        aaguid: Authenticator AAGUID, if reported.
    """

    credential_id: str
    public_key: bytes
    sign_count: int
    aaguid: str | None = None


@dataclass(frozen=True)
class AssertionResult:
    """Verified authentication.

    Attributes:
        new_sign_count: Counter value to persist.
    """

    new_sign_count: int


class WebAuthnProvider(ABC):
    """Abstract WebAuthn ceremony primitive."""

    @abstractmethod
    def generate_creation_options(
        self,
        *,
        rp_id: str,
        rp_name: str,
        user_id: bytes,
        user_name: str,
        exclude_credentials: list[CredentialDescriptor],
    ) -> CeremonyOptions:
        """Build registration options.

        Resident key and user verification are requested as "preferred".

        Args:
            rp_id: Relying party id (a registrable domain).
            rp_name: Human-readable relying party name.
            user_id: Opaque user handle.
            user_name: Account name shown by the authenticator.
            exclude_credentials: Credentials the authenticator must not
                register again.

        Returns:
            CeremonyOptions with a fresh challenge.
        """
        ...

    @abstractmethod
    def generate_request_options(
        self,
        *,
        rp_id: str,
        allow_credentials: list[CredentialDescriptor],
    ) -> CeremonyOptions:
        """Build authentication options.

        Args:
            rp_id: Relying party id.
            allow_credentials: Permitted credentials; empty means any
                discoverable credential.

        Returns:
            CeremonyOptions with a fresh challenge.
        """
        ...

    @abstractmethod
    def verify_attestation(
        self,
        *,
        response: dict[str, Any],
        expected_challenge: str,
        expected_origin: str,
        expected_rp_id: str,
    ) -> AttestationResult:
        """Verify a registration response.

        Raises:
            WebAuthnVerificationError: If the response does not verify.
        """
        ...

    @abstractmethod
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
        """Verify an authentication response against a stored credential.

        Raises:
            WebAuthnVerificationError: If the response does not verify.
        """
        ...
