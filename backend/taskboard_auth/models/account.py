"""Account model - identity root.

One row per person. Authentication methods hang off it: a password hash, a
Google subject id, and/or a passkey row. The pending email-verification
token lives on the account as a token/expiry pair.
"""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from taskboard_auth.models.base import Base, CreatedAtMixin


class Account(Base, CreatedAtMixin):
    """User account for authentication.

    Attributes:
        id: Integer primary key, assigned at creation, immutable.
        email: Unique email address (stored as given).
        password_hash: PBKDF2 hash. NULL for passkey/OAuth-only accounts.
        email_verified: Whether the email address has been confirmed.
        google_id: Google account subject. NULL unless linked.
        provider: Method the account was created with
            ("password", "google" or "passkey").
        verification_token: Pending email-verification token.
        verification_token_expires_at: Expiry of verification_token.
        created_at: Account creation timestamp (from CreatedAtMixin).
    """

    __tablename__ = "accounts"
    __table_args__ = (
        # Token and expiry are present or absent together
        CheckConstraint(
            "(verification_token IS NULL) = (verification_token_expires_at IS NULL)",
            name="ck_accounts_verification_token_pair",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    google_id: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )
    provider: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="password",
        server_default="password",
    )
    verification_token: Mapped[str | None] = mapped_column(
        String(64),
        unique=True,
        nullable=True,
    )
    verification_token_expires_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )

    @property
    def has_password(self) -> bool:
        """True if the account can sign in with a password."""
        return self.password_hash is not None

    def __repr__(self) -> str:
        return f"<Account(id={self.id!r}, provider={self.provider!r})>"
