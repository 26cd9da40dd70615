"""
Warden - Ban Expiry Scheduler
=============================

Background task that runs the ban sweep for every guild the bot is in.
"""

from typing import TYPE_CHECKING

from discord.ext import tasks

from src.core.config import SWEEP_INTERVAL_MINUTES
from src.core.logger import logger
from src.services.moderation.errors import StoreError
from src.services.moderation.sweeper import BanSweeper

if TYPE_CHECKING:
    from src.bot import WardenBot


class BanExpiryScheduler:
    """
    Scheduler that periodically lifts expired bans.

    DESIGN:
    - Runs every SWEEP_INTERVAL_MINUTES
    - Sweeps guilds one after another; a store failure in one guild is
      logged and the next guild is still swept
    - Per-guild serialization lives in BanSweeper, so a manual sweep and a
      scheduled one never overlap for the same guild
    """

    def __init__(self, bot: "WardenBot", sweeper: BanSweeper, interval_minutes: int = SWEEP_INTERVAL_MINUTES) -> None:
        """
        Initialize the ban expiry scheduler.

        Args:
            bot: The WardenBot instance
            sweeper: Sweeper holding the retention policy
            interval_minutes: Minutes between runs
        """
        self.bot = bot
        self.sweeper = sweeper
        self.interval_minutes = interval_minutes

    async def start(self) -> None:
        """Start the scheduler."""
        if not self._check_expired_bans.is_running():
            self._check_expired_bans.change_interval(minutes=self.interval_minutes)
            self._check_expired_bans.start()
            logger.info("Ban Expiry Scheduler Started", [
                ("Interval", f"{self.interval_minutes} minutes"),
                ("Retention", f"{self.sweeper.config.retention_days} days"),
            ])

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._check_expired_bans.is_running():
            self._check_expired_bans.cancel()
            logger.info("Ban Expiry Scheduler Stopped")

    async def run_once(self) -> None:
        """Sweep every guild once."""
        for guild in list(self.bot.guilds):
            try:
                result = await self.sweeper.sweep_expired_bans(guild.id)
            except StoreError as e:
                logger.error("Ban Sweep Failed", [
                    ("Guild", f"{guild.name} ({guild.id})"),
                    ("Error", str(e)),
                ])
                continue

            for failure in result.errors:
                logger.warning("Expired Ban Marked Inactive Without Unban", [
                    ("Guild", f"{guild.name} ({guild.id})"),
                    ("User ID", str(failure.user_id)),
                    ("Error", failure.error),
                ])

    @tasks.loop(minutes=SWEEP_INTERVAL_MINUTES)
    async def _check_expired_bans(self) -> None:
        """Loop body."""
        logger.debug("Running Scheduled Unbans")
        await self.run_once()

    @_check_expired_bans.before_loop
    async def _before_check(self) -> None:
        """Wait until the bot is ready before starting."""
        await self.bot.wait_until_ready()


__all__ = ["BanExpiryScheduler"]
