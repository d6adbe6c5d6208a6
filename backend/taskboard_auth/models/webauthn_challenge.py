"""WebAuthn challenge model - one row per in-flight ceremony.

Single-use and time-limited (5 minutes). A NULL account_id means the
challenge may be answered by any account (discoverable-credential login).
"""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from taskboard_auth.models.base import Base, CreatedAtMixin


class CeremonyType(StrEnum):
    """Kind of WebAuthn ceremony a challenge belongs to."""

    REGISTRATION = "registration"
    AUTHENTICATION = "authentication"


class WebAuthnChallenge(Base, CreatedAtMixin):
    """Server-issued WebAuthn challenge awaiting a client response.

    Attributes:
        id: Integer primary key (tie-breaker for same-instant rows).
        challenge: Base64url challenge embedded in the ceremony options.
        account_id: Owning account, or NULL for "any account".
        ceremony_type: "registration" or "authentication".
        expires_at: Expiry timestamp.
        created_at: Issuance timestamp (from CreatedAtMixin).
    """

    __tablename__ = "webauthn_challenges"
    __table_args__ = (
        CheckConstraint(
            "ceremony_type IN ('registration', 'authentication')",
            name="ck_webauthn_challenges_ceremony_type",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    challenge: Mapped[str] = mapped_column(String(255), nullable=False)
    account_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    ceremony_type: Mapped[str] = mapped_column(String(20), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
