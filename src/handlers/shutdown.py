"""
Warden Moderation Bot - Shutdown Handler
========================================

Graceful shutdown and cleanup logic.
"""

import asyncio
from typing import TYPE_CHECKING, Any, List, Tuple

from src.core.logger import logger
from src.services.moderation.db import CaseDatabase

if TYPE_CHECKING:
    from src.bot import WardenBot


# =============================================================================
# Constants
# =============================================================================

SHUTDOWN_TIMEOUT = 10.0  # Maximum seconds to wait for cleanup tasks


# =============================================================================
# Shutdown Handler
# =============================================================================

async def _safe_cleanup(name: str, cleanup_coro: Any) -> bool:
    """
    Execute a cleanup coroutine with error handling.

    Returns:
        True if cleanup succeeded, False otherwise
    """
    try:
        await cleanup_coro
        logger.debug("Cleanup Complete", [
            ("Task", name),
        ])
        return True
    except asyncio.CancelledError:
        logger.debug("Cleanup Cancelled", [
            ("Task", name),
        ])
        return True
    except Exception as e:
        logger.warning("Cleanup Failed", [
            ("Task", name),
            ("Error Type", type(e).__name__),
            ("Error", str(e)),
        ])
        return False


async def shutdown_handler(bot: "WardenBot") -> None:
    """
    Stop the scheduler, then close the database.

    Each cleanup runs on its own so one failure does not block the rest.
    The scheduler goes first so no sweep is writing while the store closes.
    """
    logger.info("Shutting Down Warden", [
        ("Timeout", f"{SHUTDOWN_TIMEOUT}s"),
    ])

    cleanup_tasks: List[Tuple[str, Any]] = []

    if bot.ban_expiry_scheduler is not None:
        cleanup_tasks.append(("Ban Expiry Scheduler", bot.ban_expiry_scheduler.stop()))

    if bot.db is not None:
        cleanup_tasks.append(("Case Database", _close_database(bot.db)))

    if not cleanup_tasks:
        logger.info("No Cleanup Tasks Required")
        return

    successful = 0
    try:
        async with asyncio.timeout(SHUTDOWN_TIMEOUT):
            for name, coro in cleanup_tasks:
                if await _safe_cleanup(name, coro):
                    successful += 1
    except asyncio.TimeoutError:
        logger.warning("Shutdown Cleanup Timed Out", [
            ("Timeout", f"{SHUTDOWN_TIMEOUT}s"),
            ("Note", "Some tasks may not have completed"),
        ])

    logger.tree("Bot Shutdown Complete", [
        ("Successful", str(successful)),
        ("Failed", str(len(cleanup_tasks) - successful)),
    ], emoji="👋")


async def _close_database(db: CaseDatabase) -> None:
    """Close the database off the event loop."""
    await asyncio.to_thread(db.close)


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["shutdown_handler"]
