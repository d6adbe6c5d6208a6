"""Repository for OAuthState CRUD operations.

Single-use OAuth CSRF state + PKCE verifier rows.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.models.oauth_state import OAuthState


class OAuthStateRepository:
    """Stateless repository for OAuthState table operations.

    All methods are static; no instance state.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        state: str,
        code_verifier: str,
        provider: str,
        expires_at: datetime,
        redirect_to: str | None = None,
    ) -> OAuthState:
        """Store a pending OAuth authorization.

        Args:
            db: Async database session.
            state: Random CSRF state parameter.
            code_verifier: PKCE code verifier.
            provider: Provider name.
            expires_at: Expiry timestamp.
            redirect_to: Optional in-app path to return to.

        Returns:
            Created OAuthState.
        """
        row = OAuthState(
            state=state,
            code_verifier=code_verifier,
            provider=provider,
            expires_at=expires_at,
            redirect_to=redirect_to,
        )
        db.add(row)
        await db.flush()
        return row

    @staticmethod
    async def get_by_state(db: AsyncSession, state: str) -> OAuthState | None:
        """Look up a pending authorization by its state parameter."""
        stmt = select(OAuthState).where(OAuthState.state == state)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def delete_by_state(db: AsyncSession, state: str) -> None:
        """Delete a state row (single-use cleanup)."""
        stmt = delete(OAuthState).where(OAuthState.state == state)
        await db.execute(stmt)

    @staticmethod
    async def delete_expired(db: AsyncSession) -> int:
        """Delete all expired state rows (periodic cleanup).

        Args:
            db: Async database session.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(OAuthState).where(OAuthState.expires_at < datetime.now(UTC))
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
