"""
Warden - Moderation Summary Builder
===================================

Read-only overview of a user's history: report and warning counts, ban
status and the report behind their latest warning.
"""

import asyncio
from typing import Any, Awaitable, Optional, Union

from src.core.config import ModerationConfig, NO_REASON
from src.core.logger import logger
from src.services.moderation.db import CaseDatabase
from src.services.moderation.errors import StoreError, ValidationError
from src.services.moderation.gateways import UserDirectory
from src.services.moderation.models import ModerationSummary
from src.services.moderation.reports import format_report, resolve_user


class SummaryBuilder:
    """Aggregates a user's records. Never writes."""

    def __init__(self, db: CaseDatabase, directory: UserDirectory, config: ModerationConfig) -> None:
        self.db = db
        self.directory = directory
        self.config = config

    async def build_summary(self, guild_id: int, user_handle: str) -> Union[ModerationSummary, ValidationError]:
        """
        Gather the summary sub-queries concurrently.

        Each lookup is independent: one that fails is logged and shows up as
        ``None`` (or the placeholder) instead of failing the whole summary.
        """
        user_id = await resolve_user(self.directory, guild_id, user_handle, self.config.gateway_timeout)
        if user_id is None:
            return ValidationError.user_not_resolved(user_handle)

        total_reports, total_warnings, last_ban, last_warning = await asyncio.gather(
            self._best_effort("Total Reports", self.db.count_reports_async(guild_id, user_id)),
            self._best_effort("Total Warnings", self.db.count_warnings_async(guild_id, user_id)),
            self._best_effort("Last Ban", self.db.get_latest_ban_async(guild_id, user_id)),
            self._best_effort("Last Warning", self._last_warning_text(guild_id, user_id)),
        )

        return ModerationSummary(
            user_handle=user_handle,
            user_id=user_id,
            total_reports=total_reports,
            total_warnings=total_warnings,
            last_ban=last_ban,
            last_warning=last_warning or NO_REASON,
        )

    async def _last_warning_text(self, guild_id: int, user_id: int) -> str:
        warning = await self.db.get_latest_warning_async(guild_id, user_id)
        if warning is None or warning.report_id is None:
            return NO_REASON
        report = await self.db.get_report_async(warning.report_id)
        if report is None:
            return NO_REASON
        return format_report(report)

    async def _best_effort(self, field: str, awaitable: Awaitable[Any]) -> Optional[Any]:
        try:
            return await awaitable
        except StoreError as e:
            logger.warning("Summary Lookup Failed", [
                ("Field", field),
                ("Error", str(e)),
            ])
            return None


__all__ = ["SummaryBuilder"]
