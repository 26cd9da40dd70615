"""
Warden Moderation Bot - Ready Handler
=====================================

Startup work that needs a live Discord connection: command sync and the
ban expiry scheduler.
"""

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, List

import discord

from src.core.config import COMMAND_GUILD_ID
from src.core.logger import logger

if TYPE_CHECKING:
    from src.bot import WardenBot


# =============================================================================
# Constants
# =============================================================================

SERVICE_INIT_TIMEOUT: float = 30.0


async def _safe_init(
    name: str,
    init_func: Callable[["WardenBot"], Awaitable[None]],
    bot: "WardenBot",
    timeout: float = SERVICE_INIT_TIMEOUT
) -> bool:
    """
    Run one startup step with a timeout.

    Returns:
        True if the step succeeded, False otherwise
    """
    try:
        async with asyncio.timeout(timeout):
            await init_func(bot)
        return True
    except asyncio.TimeoutError:
        logger.error("Timeout Initializing Service", [
            ("Service", name),
            ("Timeout", f"{timeout}s"),
            ("Status", "Skipped - continuing startup"),
        ])
        return False
    except Exception as e:
        logger.error("Failed To Initialize Service", [
            ("Service", name),
            ("Error Type", type(e).__name__),
            ("Error", str(e)),
        ])
        return False


async def on_ready_handler(bot: "WardenBot") -> None:
    """
    Sync commands and start background work once connected.

    A failing step is logged; the remaining steps still run.
    """
    logger.tree(
        f"Bot Ready: {bot.user.name}",
        [
            ("Bot ID", str(bot.user.id)),
            ("Guilds", str(len(bot.guilds))),
            ("Warnings Threshold", str(bot.moderation_config.warnings_thresh)),
            ("Escalation Window", f"{bot.moderation_config.warnings_range_days} days"),
            ("Ban Retention", f"{bot.moderation_config.retention_days} days"),
            ("Database", "OK" if bot.db.health_check() else "Unavailable"),
        ],
        emoji="✅",
    )

    init_results: List[tuple[str, bool]] = [
        ("Command Sync", await _safe_init("Command Sync", _sync_commands, bot)),
        ("Ban Expiry Scheduler", await _safe_init("Ban Expiry Scheduler", _init_ban_expiry_scheduler, bot)),
    ]

    failed_services = [name for name, ok in init_results if not ok]
    if failed_services:
        logger.warning("Startup Completed With Errors", [
            ("Services OK", str(len(init_results) - len(failed_services))),
            ("Failed", ", ".join(failed_services)),
        ])
    else:
        logger.tree("All Services Initialized", [
            ("Services", str(len(init_results))),
            ("Status", "All OK"),
        ], emoji="✅")


# =============================================================================
# Service Initialization
# =============================================================================

async def _init_ban_expiry_scheduler(bot: "WardenBot") -> None:
    """Start the periodic expired-ban sweep."""
    await bot.ban_expiry_scheduler.start()


async def _sync_commands(bot: "WardenBot") -> None:
    """
    Sync slash commands.

    Guild sync is instant; global sync can take up to an hour to show up.
    """
    if COMMAND_GUILD_ID:
        guild = discord.Object(id=COMMAND_GUILD_ID)
        bot.tree.copy_global_to(guild=guild)
        synced = await bot.tree.sync(guild=guild)
        scope = str(COMMAND_GUILD_ID)
    else:
        synced = await bot.tree.sync()
        scope = "Global"

    logger.tree("Synced Commands", [
        ("Scope", scope),
        ("Commands", str(len(synced))),
    ], emoji="⚡")


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["on_ready_handler"]
