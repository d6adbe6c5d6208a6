"""Repository for Passkey CRUD operations.

Provides database access for the passkeys table.
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.models.passkey import Passkey


class PasskeyRepository:
    """Stateless repository for Passkey table operations.

    All methods are static; no instance state.
    """

    @staticmethod
    async def list_for_account(db: AsyncSession, account_id: int) -> Sequence[Passkey]:
        """Fetch every passkey bound to an account.

        Args:
            db: Async database session.
            account_id: Owning account id.

        Returns:
            Passkeys in creation order.
        """
        stmt = (
            select(Passkey)
            .where(Passkey.account_id == account_id)
            .order_by(Passkey.created_at, Passkey.id)
        )
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def get_most_recent_for_account(
        db: AsyncSession, account_id: int
    ) -> Passkey | None:
        """Fetch the account's most recently used (or, if unused, created) passkey.

        Args:
            db: Async database session.
            account_id: Owning account id.

        Returns:
            Passkey if the account has one, None otherwise.
        """
        stmt = (
            select(Passkey)
            .where(Passkey.account_id == account_id)
            .order_by(
                func.coalesce(Passkey.last_used_at, Passkey.created_at).desc(),
                Passkey.id.desc(),
            )
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def get_by_credential_id(
        db: AsyncSession, credential_id: str
    ) -> Passkey | None:
        """Fetch a passkey by its base64url credential id.

        Args:
            db: Async database session.
            credential_id: Credential id reported by the authenticator.

        Returns:
            Passkey if found, None otherwise.
        """
        stmt = select(Passkey).where(Passkey.credential_id == credential_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        account_id: int,
        credential_id: str,
        public_key: bytes,
        counter: int,
        transports: str | None = None,
        aaguid: str | None = None,
    ) -> Passkey:
        """Store a newly registered credential.

        Args:
            db: Async database session.
            account_id: Owning account id.
            credential_id: Base64url credential id.
            public_key: COSE public key bytes.
            counter: Initial signature counter.
            transports: JSON array text of transport hints.
            aaguid: Authenticator AAGUID.

        Returns:
            Created Passkey.

        Raises:
            sqlalchemy.exc.IntegrityError: If credential_id already exists.
        """
        passkey = Passkey(
            account_id=account_id,
            credential_id=credential_id,
            public_key=public_key,
            counter=counter,
            transports=transports,
            aaguid=aaguid,
        )
        db.add(passkey)
        await db.flush()
        await db.refresh(passkey)
        return passkey

    @staticmethod
    async def record_use(
        db: AsyncSession,
        passkey: Passkey,
        *,
        counter: int,
        used_at: datetime,
    ) -> Passkey:
        """Persist the counter and last-used time after a verified assertion.

        Args:
            db: Async database session.
            passkey: Passkey that authenticated.
            counter: New signature counter reported by the verifier.
            used_at: Authentication time.

        Returns:
            Updated Passkey.
        """
        passkey.counter = counter
        passkey.last_used_at = used_at
        await db.flush()
        return passkey

    @staticmethod
    async def delete_all_for_account(db: AsyncSession, account_id: int) -> int:
        """Delete every passkey of an account.

        Args:
            db: Async database session.
            account_id: Owning account id.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(Passkey).where(Passkey.account_id == account_id)
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count

    @staticmethod
    async def exists_for_account(db: AsyncSession, account_id: int) -> bool:
        """Check whether an account has a registered passkey."""
        stmt = select(Passkey.id).where(Passkey.account_id == account_id).limit(1)
        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None
