"""
Warden - Channel Access Revoker
===============================

Takes read/send permissions away from one user in a set of channels and
files a report naming the channels where that worked.
"""

import asyncio
from typing import Optional, Sequence

from src.core.config import ModerationConfig
from src.core.logger import logger
from src.services.moderation.db import CaseDatabase
from src.services.moderation.errors import GatewayError, StoreError, ValidationError
from src.services.moderation.gateways import AccessControlGateway, UserDirectory, call_gateway
from src.services.moderation.models import (
    ChannelFailure,
    ChannelRef,
    ChannelRevocationResult,
    Clock,
    to_timestamp,
    utc_now,
)
from src.services.moderation.reports import build_report, resolve_user


class ChannelAccessRevoker:
    """Per-channel bans for a single user."""

    def __init__(
        self,
        db: CaseDatabase,
        directory: UserDirectory,
        access: AccessControlGateway,
        config: ModerationConfig,
        clock: Clock = utc_now,
    ) -> None:
        self.db = db
        self.directory = directory
        self.access = access
        self.config = config
        self.clock = clock

    async def revoke_channel_access(
        self,
        guild_id: int,
        user_handle: str,
        channels: Sequence[ChannelRef],
    ) -> ChannelRevocationResult:
        """
        Deny read and send in every channel, concurrently.

        All channel calls are awaited before results are compiled; one
        failing channel never cancels the rest. The summary report is
        filed afterwards and its outcome does not touch ``revoked``.
        """
        user_id = await resolve_user(self.directory, guild_id, user_handle, self.config.gateway_timeout)
        if user_id is None:
            logger.error("Channel Ban Failed - Unknown User", [
                ("Guild ID", str(guild_id)),
                ("Handle", user_handle),
            ])
            return ChannelRevocationResult(user_id=None)

        outcomes = await asyncio.gather(
            *(self._deny(guild_id, user_id, user_handle, channel) for channel in channels)
        )

        result = ChannelRevocationResult(user_id=user_id)
        for channel, failure in zip(channels, outcomes):
            if failure is None:
                result.revoked.append(channel)
            else:
                result.failed.append(failure)

        await self._file_summary_report(guild_id, user_id, result)

        logger.tree("Channel Permissions Revoked", [
            ("User", f"{user_handle} ({user_id})"),
            ("Revoked", ", ".join(c.name for c in result.revoked) or "None"),
            ("Failed", str(len(result.failed))),
            ("Report", str(result.report_id) if result.report_id else "Not filed"),
        ], emoji="🔒")

        return result

    async def _deny(
        self,
        guild_id: int,
        user_id: int,
        user_handle: str,
        channel: ChannelRef,
    ) -> Optional[ChannelFailure]:
        logger.debug("Taking Channel Permissions Away", [
            ("Channel", channel.name),
            ("User ID", str(user_id)),
        ])
        try:
            await call_gateway(
                "Deny Channel Access",
                self.access.deny_channel_access(guild_id, user_id, channel),
                self.config.gateway_timeout,
            )
        except GatewayError as e:
            logger.error("Failed To Adjust Channel Permissions", [
                ("User", user_handle),
                ("Channel", channel.name),
                ("Error", str(e)),
            ])
            return ChannelFailure(channel=channel, error=str(e))
        return None

    async def _file_summary_report(self, guild_id: int, user_id: int, result: ChannelRevocationResult) -> None:
        """Record which channels were revoked. Failures are logged and kept on the result."""
        names = ", ".join(c.name for c in result.revoked) or "no channels"
        report = build_report(
            guild_id,
            user_id,
            to_timestamp(self.clock()),
            description=f"Took channel permissions away in {names}",
        )
        if isinstance(report, ValidationError):
            result.report_error = report.message
            return

        try:
            result.report_id = await self.db.insert_report_async(report)
        except StoreError as e:
            logger.error("Failed To Add Report About Channel Ban", [
                ("User ID", str(user_id)),
                ("Error", str(e)),
            ])
            result.report_error = str(e)


__all__ = ["ChannelAccessRevoker"]
