"""Repository for PasswordResetToken CRUD operations.

Single-use reset tokens, at most one per account.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.models.password_reset_token import PasswordResetToken


class PasswordResetTokenRepository:
    """Stateless repository for PasswordResetToken table operations.

    All methods are static; no instance state.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        account_id: int,
        token: str,
        expires_at: datetime,
    ) -> PasswordResetToken:
        """Store a new reset token.

        Args:
            db: Async database session.
            account_id: Owning account id.
            token: Plain token sent in the reset link.
            expires_at: Expiry timestamp.

        Returns:
            Created PasswordResetToken.
        """
        row = PasswordResetToken(
            account_id=account_id,
            token=token,
            expires_at=expires_at,
        )
        db.add(row)
        await db.flush()
        return row

    @staticmethod
    async def get_by_token(db: AsyncSession, token: str) -> PasswordResetToken | None:
        """Look up a reset token.

        Args:
            db: Async database session.
            token: Plain token from the reset link.

        Returns:
            PasswordResetToken if found, None otherwise.
        """
        stmt = select(PasswordResetToken).where(PasswordResetToken.token == token)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_for_account(
        db: AsyncSession, account_id: int
    ) -> PasswordResetToken | None:
        """Fetch the outstanding reset token of an account, if any."""
        stmt = select(PasswordResetToken).where(
            PasswordResetToken.account_id == account_id
        )
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def delete_by_token(db: AsyncSession, token: str) -> None:
        """Delete a token (single-use cleanup).

        Args:
            db: Async database session.
            token: Plain token to delete.
        """
        stmt = delete(PasswordResetToken).where(PasswordResetToken.token == token)
        await db.execute(stmt)

    @staticmethod
    async def delete_all_for_account(db: AsyncSession, account_id: int) -> None:
        """Delete every reset token of an account (before issuing a new one).

        Args:
            db: Async database session.
            account_id: Owning account id.
        """
        stmt = delete(PasswordResetToken).where(
            PasswordResetToken.account_id == account_id
        )
        await db.execute(stmt)

    @staticmethod
    async def delete_expired(db: AsyncSession) -> int:
        """Delete all expired tokens (periodic cleanup).

        Args:
            db: Async database session.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(PasswordResetToken).where(
            PasswordResetToken.expires_at < datetime.now(UTC),
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
