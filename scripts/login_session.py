"""
Open a visible browser on the persistent profile and wait for a manual
Google login. Run once before starting the server on a new machine.
"""

import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.logging_config import setup_logging  # noqa: E402
from services.browser.session import SessionManager  # noqa: E402

logger = logging.getLogger("login")


async def run():
    session = SessionManager(headless=False)
    try:
        await session.ensure_ready()
        if session.has_valid_profile():
            await session.wait_for_login()
        logger.info("✅ Session saved")
    finally:
        await session.shutdown()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(run())
