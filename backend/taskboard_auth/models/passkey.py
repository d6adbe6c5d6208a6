"""Passkey model - stored WebAuthn credential.

Each account holds at most one passkey; registering a new one replaces the
old. The counter is persisted after every successful assertion.
"""

import json
from datetime import datetime

from sqlalchemy import ForeignKey, Integer, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskboard_auth.models.base import Base, CreatedAtMixin


class Passkey(Base, CreatedAtMixin):
    """WebAuthn credential bound to one account.

    Attributes:
        id: Integer primary key.
        account_id: FK to accounts table.
        credential_id: Base64url credential id from the authenticator
            (globally unique; lookup key for assertions).
        public_key: COSE public key bytes for signature verification.
        counter: Signature counter from the last verified ceremony.
        transports: JSON array text of transport hints, e.g. '["internal"]'.
        aaguid: Authenticator model identifier, if reported.
        last_used_at: When this credential last authenticated.
        created_at: Registration timestamp (from CreatedAtMixin).
    """

    __tablename__ = "passkeys"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    credential_id: Mapped[str] = mapped_column(
        String(1024),
        unique=True,
        nullable=False,
    )
    public_key: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    counter: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    transports: Mapped[str | None] = mapped_column(Text(), nullable=True)
    aaguid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_used_at: Mapped[datetime | None] = mapped_column(nullable=True)

    @property
    def transport_list(self) -> list[str] | None:
        """Transport hints parsed from the stored JSON text.

        Returns:
            List of transport names, or None if absent or unparseable.
        """
        if not self.transports:
            return None
        try:
            parsed = json.loads(self.transports)
        except ValueError:
            return None
        if not isinstance(parsed, list):
            return None
        return [str(t) for t in parsed]

    def __repr__(self) -> str:
        return f"<Passkey(id={self.id!r}, account_id={self.account_id!r})>"
