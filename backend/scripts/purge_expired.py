"""Delete expired WebAuthn challenges, reset tokens and OAuth states.

Standalone maintenance script; safe to run at any time.

Usage:
    cd backend && python -m scripts.purge_expired
"""

import asyncio
import logging

from taskboard_auth.core.config import load_settings
from taskboard_auth.core.database import create_engine_and_factory
from taskboard_auth.services.auth_cleanup import purge_expired_auth_records

logger = logging.getLogger(__name__)


async def main() -> None:
    """CLI entry point: purge against the configured database."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings()
    engine, factory = create_engine_and_factory(settings)

    async with factory() as session:
        report = await purge_expired_auth_records(session)

    await engine.dispose()

    logger.info(
        "Purge complete: %d challenges, %d reset tokens, %d oauth states",
        report.challenges,
        report.reset_tokens,
        report.oauth_states,
    )


if __name__ == "__main__":
    asyncio.run(main())
