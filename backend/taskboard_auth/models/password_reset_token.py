"""Password reset token model.

At most one outstanding token per account. Consumed on successful reset or
deleted when found expired.
"""

from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from taskboard_auth.models.base import Base, CreatedAtMixin


class PasswordResetToken(Base, CreatedAtMixin):
    """Single-use password reset token.

    Attributes:
        id: Integer primary key.
        account_id: FK to accounts table.
        token: Random 64-hex-character token sent in the reset link.
        expires_at: Expiry timestamp (1 hour after issuance).
        created_at: Issuance timestamp (from CreatedAtMixin).
    """

    __tablename__ = "password_reset_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
