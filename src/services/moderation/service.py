"""
Warden - Moderation Service
===========================

Files reports, warnings and bans.

DESIGN:
- A report is always written first; the warning or ban that follows
  references its id, so a failed report write stops the operation.
- A warning escalates to a ban when the user's most recent
  ``warnings_thresh`` warnings all fall inside the rolling window.
- A ban row is committed before the platform ban is attempted. If the
  platform call fails the row stays and the caller gets BAN_ACTION_FAILED.
- The warning DM is best-effort; its result is reported, never fatal.
"""

from datetime import timedelta
from typing import Optional

from src.core.config import ModerationConfig, NO_REASON
from src.core.logger import logger
from src.services.moderation.db import CaseDatabase
from src.services.moderation.errors import GatewayError
from src.services.moderation.gateways import (
    AccessControlGateway,
    NotificationGateway,
    call_gateway,
)
from src.services.moderation.models import (
    Clock,
    GatewayResult,
    ModerationOutcome,
    ModerationResult,
    Report,
    WarningRecord,
    to_timestamp,
    utc_now,
)
from src.services.moderation.reports import format_report


WARNING_DM_TEXT = "A warning has been issued."


class ModerationService:
    """
    Report, warning and ban filing.

    Args:
        db: Case record store
        notifier: Sends DMs to sanctioned users
        access: Platform ban/unban and channel permissions
        config: Escalation and timeout policy
        clock: Source of "now", UTC
    """

    def __init__(
        self,
        db: CaseDatabase,
        notifier: NotificationGateway,
        access: AccessControlGateway,
        config: ModerationConfig,
        clock: Clock = utc_now,
    ) -> None:
        self.db = db
        self.notifier = notifier
        self.access = access
        self.config = config
        self.clock = clock

    # =========================================================================
    # Reports
    # =========================================================================

    async def file_report(self, report: Report) -> ModerationResult:
        """Persist a report without warning the subject."""
        report_id = await self.db.insert_report_async(report)

        logger.tree("Report Filed", [
            ("Guild ID", str(report.guild_id)),
            ("User ID", str(report.user_id)),
            ("Report ID", str(report_id)),
        ], emoji="📝")

        return ModerationResult(
            outcome=ModerationOutcome.REPORTED,
            message=f"Added report: {format_report(report)}",
            report_id=report_id,
        )

    # =========================================================================
    # Warnings
    # =========================================================================

    def should_escalate(self, recent_warnings: list[WarningRecord]) -> bool:
        """
        Whether the next warning should become a ban.

        ``recent_warnings`` is the user's newest ``warnings_thresh`` warnings.
        All of them must be inside the window; one older warning in the
        sample is enough to keep this a plain warning.
        """
        if len(recent_warnings) < self.config.warnings_thresh:
            return False
        window_start = to_timestamp(self.clock() - timedelta(days=self.config.warnings_range_days))
        return all(w.date >= window_start for w in recent_warnings)

    async def file_warning(self, report: Report) -> ModerationResult:
        """
        File a report and warn the subject, escalating to a ban when the
        user has been warned too often inside the window.

        Raises:
            StoreError: If a read or write fails
        """
        report_id = await self.db.insert_report_async(report)

        recent = await self.db.get_recent_warnings_async(
            report.guild_id, report.user_id, self.config.warnings_thresh
        )

        if self.should_escalate(recent):
            logger.tree("Warning Escalated To Ban", [
                ("Guild ID", str(report.guild_id)),
                ("User ID", str(report.user_id)),
                ("Recent Warnings", str(len(recent))),
                ("Window", f"{self.config.warnings_range_days} days"),
            ], emoji="⛔")

            ban_result = await self.file_ban(report, report_id=report_id)
            return ModerationResult(
                outcome=ModerationOutcome.ESCALATED_TO_BAN,
                message=f"User has been warned too many times. Escalate to ban. {ban_result.message}",
                report_id=report_id,
                record_id=ban_result.record_id,
                ban=ban_result,
            )

        warning_id = await self.db.insert_warning_async(
            report.guild_id, report.user_id, to_timestamp(self.clock()), report_id
        )

        notification = await self._notify_user(WARNING_DM_TEXT, report)

        logger.tree("User Warned", [
            ("Guild ID", str(report.guild_id)),
            ("User ID", str(report.user_id)),
            ("Warning ID", str(warning_id)),
            ("DM", "Sent" if notification.ok else "Failed"),
        ], emoji="⚠️")

        return ModerationResult(
            outcome=ModerationOutcome.WARNED,
            message=f"User warned: {format_report(report)}",
            report_id=report_id,
            record_id=warning_id,
            notification=notification,
        )

    # =========================================================================
    # Bans
    # =========================================================================

    async def file_ban(self, report: Report, report_id: Optional[int] = None) -> ModerationResult:
        """
        File a report and ban the subject.

        Args:
            report: The incident behind the ban
            report_id: Id of ``report`` when the caller already persisted it

        Raises:
            StoreError: If a read or write fails
        """
        existing = await self.db.get_active_ban_async(report.guild_id, report.user_id)
        if existing is not None:
            return self._already_banned(report, report_id)

        if report_id is None:
            report_id = await self.db.insert_report_async(report)

        reason = report.description or NO_REASON
        ban_id = await self.db.insert_ban_async(
            report.guild_id, report.user_id, to_timestamp(self.clock()), reason, report_id
        )
        if ban_id is None:
            return self._already_banned(report, report_id)

        try:
            await call_gateway(
                "Platform Ban",
                self.access.platform_ban(report.guild_id, report.user_id, reason),
                self.config.gateway_timeout,
            )
        except GatewayError as e:
            logger.error("Platform Ban Failed", [
                ("Guild ID", str(report.guild_id)),
                ("User ID", str(report.user_id)),
                ("Ban ID", str(ban_id)),
                ("Error", str(e)),
            ])
            return ModerationResult(
                outcome=ModerationOutcome.BAN_ACTION_FAILED,
                message="Issue occurred trying to ban user.",
                report_id=report_id,
                record_id=ban_id,
            )

        logger.tree("User Banned", [
            ("Guild ID", str(report.guild_id)),
            ("User ID", str(report.user_id)),
            ("Ban ID", str(ban_id)),
            ("Reason", reason),
        ], emoji="🔨")

        return ModerationResult(
            outcome=ModerationOutcome.BANNED,
            message="Banned user.",
            report_id=report_id,
            record_id=ban_id,
        )

    def _already_banned(self, report: Report, report_id: Optional[int]) -> ModerationResult:
        logger.info("Ban Skipped - Already Banned", [
            ("Guild ID", str(report.guild_id)),
            ("User ID", str(report.user_id)),
        ])
        return ModerationResult(
            outcome=ModerationOutcome.ALREADY_BANNED,
            message="User is already banned.",
            report_id=report_id,
        )

    # =========================================================================
    # Notifications
    # =========================================================================

    async def _notify_user(self, message: str, report: Report) -> GatewayResult:
        """DM the reported user. Failures are logged and returned."""
        text = f"{message} Reason: {report.description or NO_REASON}"
        try:
            await call_gateway(
                "Direct Message",
                self.notifier.send_direct_message(report.user_id, text, report.attachments),
                self.config.gateway_timeout,
            )
        except GatewayError as e:
            logger.warning("Moderation DM Failed", [
                ("User ID", str(report.user_id)),
                ("Error", str(e)),
            ])
            return GatewayResult.failure(e)
        return GatewayResult.success()


__all__ = ["ModerationService", "WARNING_DM_TEXT"]
