"""Repository for WebAuthnChallenge CRUD operations.

Challenges are looked up as "the most recently created row of this
ceremony type" (optionally restricted to one account), not by a value the
client echoes back. Ordering is created_at DESC with id DESC as tie-breaker.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.models.webauthn_challenge import CeremonyType, WebAuthnChallenge


class ChallengeRepository:
    """Stateless repository for WebAuthnChallenge table operations.

    All methods are static; no instance state.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        challenge: str,
        account_id: int | None,
        ceremony_type: CeremonyType,
        expires_at: datetime,
    ) -> WebAuthnChallenge:
        """Persist a challenge for an in-flight ceremony.

        Args:
            db: Async database session.
            challenge: Base64url challenge value from the options.
            account_id: Owning account, or None for "any account".
            ceremony_type: Registration or authentication.
            expires_at: Expiry timestamp.

        Returns:
            Created WebAuthnChallenge.
        """
        row = WebAuthnChallenge(
            challenge=challenge,
            account_id=account_id,
            ceremony_type=ceremony_type.value,
            expires_at=expires_at,
        )
        db.add(row)
        await db.flush()
        return row

    @staticmethod
    async def get_latest_for_account(
        db: AsyncSession,
        *,
        account_id: int,
        ceremony_type: CeremonyType,
    ) -> WebAuthnChallenge | None:
        """Fetch the newest challenge of a type issued to one account.

        Args:
            db: Async database session.
            account_id: Owning account id.
            ceremony_type: Registration or authentication.

        Returns:
            WebAuthnChallenge if any, None otherwise.
        """
        stmt = (
            select(WebAuthnChallenge)
            .where(
                WebAuthnChallenge.account_id == account_id,
                WebAuthnChallenge.ceremony_type == ceremony_type.value,
            )
            .order_by(WebAuthnChallenge.created_at.desc(), WebAuthnChallenge.id.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def get_latest_of_type(
        db: AsyncSession,
        *,
        ceremony_type: CeremonyType,
    ) -> WebAuthnChallenge | None:
        """Fetch the newest challenge of a type across all accounts.

        Args:
            db: Async database session.
            ceremony_type: Registration or authentication.

        Returns:
            WebAuthnChallenge if any, None otherwise.
        """
        stmt = (
            select(WebAuthnChallenge)
            .where(WebAuthnChallenge.ceremony_type == ceremony_type.value)
            .order_by(WebAuthnChallenge.created_at.desc(), WebAuthnChallenge.id.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def delete(db: AsyncSession, challenge_id: int) -> None:
        """Delete a challenge (single-use consumption).

        Args:
            db: Async database session.
            challenge_id: Primary key of the challenge row.
        """
        stmt = delete(WebAuthnChallenge).where(WebAuthnChallenge.id == challenge_id)
        await db.execute(stmt)

    @staticmethod
    async def delete_expired(db: AsyncSession) -> int:
        """Delete all expired challenges (periodic cleanup).

        Args:
            db: Async database session.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(WebAuthnChallenge).where(
            WebAuthnChallenge.expires_at < datetime.now(UTC),
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
