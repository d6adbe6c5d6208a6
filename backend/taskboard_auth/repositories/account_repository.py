"""Repository for Account CRUD operations.

Provides database access for the accounts table, including lookups by the
pending email-verification token.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.models.account import Account

# Fields that may be updated via AccountRepository.update().
# Security: Never add 'id', 'email' or 'created_at'.
# - id: primary key, immutable
# - email: unique identity, requires a dedicated flow with re-verification
# - created_at: server-managed timestamp
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "password_hash",
        "email_verified",
        "google_id",
        "verification_token",
        "verification_token_expires_at",
    }
)

_PROVIDERS: frozenset[str] = frozenset({"password", "google", "passkey"})


class AccountRepository:
    """Stateless repository for Account table operations.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, account_id: int) -> Account | None:
        """Fetch an account by primary key.

        Args:
            db: Async database session.
            account_id: Integer primary key.

        Returns:
            Account if found, None otherwise.
        """
        return await db.get(Account, account_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Account | None:
        """Fetch an account by email address (exact match, as stored).

        Args:
            db: Async database session.
            email: Email address to look up.

        Returns:
            Account if found, None otherwise.
        """
        stmt = select(Account).where(Account.email == email)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_verification_token(
        db: AsyncSession, token: str
    ) -> Account | None:
        """Fetch the account holding a pending verification token.

        Args:
            db: Async database session.
            token: Plain verification token from the emailed link.

        Returns:
            Account if found, None otherwise.
        """
        stmt = select(Account).where(Account.verification_token == token)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_google_id(db: AsyncSession, google_id: str) -> Account | None:
        """Fetch an account by linked Google subject id."""
        stmt = select(Account).where(Account.google_id == google_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str | None = None,
        google_id: str | None = None,
        email_verified: bool = False,
        provider: str = "password",
        verification_token: str | None = None,
        verification_token_expires_at: datetime | None = None,
    ) -> Account:
        """Create a new account.

        An account must carry at least one authentication method. Password
        and Google accounts must supply their credential here; "passkey"
        accounts receive theirs in the same transaction from the passkey flow.

        Args:
            db: Async database session.
            email: Account email address.
            password_hash: PBKDF2 hash (None for passkey/OAuth-only accounts).
            google_id: Google subject id.
            email_verified: Whether the email is already verified.
            provider: Creation method ("password", "google" or "passkey").
            verification_token: Initial verification token.
            verification_token_expires_at: Expiry of verification_token.

        Returns:
            Created Account with database-generated fields populated.

        Raises:
            ValueError: If no authentication method is supplied or the
                provider name is unknown.
            sqlalchemy.exc.IntegrityError: If email already exists.
        """
        if provider not in _PROVIDERS:
            msg = f"Unknown provider: {provider}"
            raise ValueError(msg)
        if provider != "passkey" and password_hash is None and google_id is None:
            msg = "Account requires a password hash or an external provider id"
            raise ValueError(msg)

        account = Account(
            email=email,
            password_hash=password_hash,
            google_id=google_id,
            email_verified=email_verified,
            provider=provider,
            verification_token=verification_token,
            verification_token_expires_at=verification_token_expires_at,
        )
        db.add(account)
        await db.flush()
        await db.refresh(account)
        return account

    @staticmethod
    async def update(
        db: AsyncSession,
        account_id: int,
        **kwargs: str | datetime | bool | None,
    ) -> Account | None:
        """Update account fields.

        Only fields in _UPDATABLE_FIELDS are allowed. Unknown field names
        raise ValueError.

        Args:
            db: Async database session.
            account_id: Primary key of the account to update.
            **kwargs: Field names and values to update.

        Returns:
            Updated Account if found, None if the account does not exist.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        unknown = set(kwargs) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        account = await db.get(Account, account_id)
        if account is None:
            return None

        for field, value in kwargs.items():
            setattr(account, field, value)

        await db.flush()
        await db.refresh(account)
        return account
