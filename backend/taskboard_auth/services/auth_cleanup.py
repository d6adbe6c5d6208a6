"""Purge of expired single-use auth records.

Expired rows are already rejected on use; this only reclaims storage. Run
from a scheduler or the ``purge_expired`` script.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_auth.repositories.challenge_repository import ChallengeRepository
from taskboard_auth.repositories.oauth_state_repository import OAuthStateRepository
from taskboard_auth.repositories.password_reset_token_repository import (
    PasswordResetTokenRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurgeReport:
    """Rows deleted by one purge run.

    Attributes:
        challenges: Expired WebAuthn challenges.
        reset_tokens: Expired password reset tokens.
        oauth_states: Expired OAuth states.
    """

    challenges: int
    reset_tokens: int
    oauth_states: int

    @property
    def total(self) -> int:
        return self.challenges + self.reset_tokens + self.oauth_states


async def purge_expired_auth_records(db: AsyncSession) -> PurgeReport:
    """Delete every expired challenge, reset token and OAuth state.

    Args:
        db: Async database session. Committed on success.

    Returns:
        PurgeReport with per-table counts.
    """
    report = PurgeReport(
        challenges=await ChallengeRepository.delete_expired(db),
        reset_tokens=await PasswordResetTokenRepository.delete_expired(db),
        oauth_states=await OAuthStateRepository.delete_expired(db),
    )
    await db.commit()
    logger.info(
        "Purged expired auth records",
        extra={
            "challenges": report.challenges,
            "reset_tokens": report.reset_tokens,
            "oauth_states": report.oauth_states,
        },
    )
    return report
