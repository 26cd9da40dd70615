"""
Warden - Ban Sweeper
====================

Lifts bans that have been active longer than the retention period.

DESIGN:
- Unbans for one sweep run concurrently; a failed unban is recorded and the
  others carry on.
- Every ban the sweep attempted is marked inactive, the failed ones
  included. A failed unban is not retried on the next sweep; moderators see
  it in the result and the error log.
- All deactivations go to the store as one batch.
- Sweeps for the same guild run one at a time (per-guild asyncio.Lock), so
  two overlapping runs never unban the same user twice.
"""

import asyncio
from datetime import timedelta
from typing import Optional

from src.core.config import ModerationConfig
from src.core.logger import logger
from src.services.moderation.db import CaseDatabase
from src.services.moderation.errors import GatewayError
from src.services.moderation.gateways import AccessControlGateway, call_gateway
from src.services.moderation.models import (
    BanRecord,
    Clock,
    SweepResult,
    SweepStatus,
    UnbanFailure,
    to_timestamp,
    utc_now,
)


class BanSweeper:
    """Finds expired active bans for a guild and lifts them."""

    def __init__(
        self,
        db: CaseDatabase,
        access: AccessControlGateway,
        config: ModerationConfig,
        clock: Clock = utc_now,
    ) -> None:
        self.db = db
        self.access = access
        self.config = config
        self.clock = clock
        self._locks: dict[int, asyncio.Lock] = {}

    def _lock_for(self, guild_id: int) -> asyncio.Lock:
        return self._locks.setdefault(guild_id, asyncio.Lock())

    def cutoff(self) -> str:
        """Bans issued at or before this timestamp are due for lifting."""
        return to_timestamp(self.clock() - timedelta(days=self.config.retention_days))

    async def sweep_expired_bans(self, guild_id: int) -> SweepResult:
        """
        Lift every expired active ban in a guild.

        Returns:
            SweepResult with STORE_UNAVAILABLE when there is no ban table,
            NOTHING_TO_DO when no ban is due, SWEPT otherwise.

        Raises:
            StoreError: If the expiry query or the batch update fails
        """
        async with self._lock_for(guild_id):
            return await self._sweep(guild_id)

    async def _sweep(self, guild_id: int) -> SweepResult:
        logger.debug("Running Ban Sweep", [
            ("Guild ID", str(guild_id)),
        ])

        if not await self.db.bans_available_async():
            logger.info("Ban Sweep Skipped - No Ban Records", [
                ("Guild ID", str(guild_id)),
            ])
            return SweepResult(guild_id=guild_id, status=SweepStatus.STORE_UNAVAILABLE)

        expired = await self.db.get_expired_bans_async(guild_id, self.cutoff())

        if not expired:
            logger.debug("No Unbans To Perform", [
                ("Guild ID", str(guild_id)),
            ])
            return SweepResult(guild_id=guild_id, status=SweepStatus.NOTHING_TO_DO)

        outcomes = await asyncio.gather(*(self._lift(ban) for ban in expired))
        errors = [failure for failure in outcomes if failure is not None]

        processed = await self.db.deactivate_bans_async(ban.id for ban in expired)

        result = SweepResult(
            guild_id=guild_id,
            status=SweepStatus.SWEPT,
            lifted_count=len(expired) - len(errors),
            processed_count=processed,
            errors=errors,
        )

        logger.tree("Ban Sweep Complete", [
            ("Guild ID", str(guild_id)),
            ("Expired", str(len(expired))),
            ("Lifted", str(result.lifted_count)),
            ("Marked Inactive", str(processed)),
            ("Failed", str(len(errors))),
        ], emoji="⏰")

        return result

    async def _lift(self, ban: BanRecord) -> Optional[UnbanFailure]:
        """Unban one user. Returns the failure instead of raising it."""
        logger.info("Unbanning User", [
            ("User ID", str(ban.user_id)),
            ("Ban ID", str(ban.id)),
            ("Banned At", ban.date),
        ])
        try:
            await call_gateway(
                "Platform Unban",
                self.access.platform_unban(ban.guild_id, ban.user_id),
                self.config.gateway_timeout,
            )
        except GatewayError as e:
            logger.error("Failed To Unban User", [
                ("User ID", str(ban.user_id)),
                ("Ban ID", str(ban.id)),
                ("Error", str(e)),
            ])
            return UnbanFailure(ban_id=ban.id, user_id=ban.user_id, error=str(e))
        return None


__all__ = ["BanSweeper"]
