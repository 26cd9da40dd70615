"""
Warden - Moderation Package
===========================

Report, warning and ban case management for a Discord guild.
"""

from src.services.moderation.db import CaseDatabase
from src.services.moderation.errors import (
    GatewayError,
    StoreError,
    ValidationError,
    ValidationErrorKind,
)
from src.services.moderation.models import (
    BanRecord,
    ChannelRef,
    ChannelRevocationResult,
    ModerationOutcome,
    ModerationResult,
    ModerationSummary,
    Report,
    SweepResult,
    SweepStatus,
    WarningRecord,
)
from src.services.moderation.reports import ReportFactory, build_report, format_report
from src.services.moderation.service import ModerationService
from src.services.moderation.sweeper import BanSweeper
from src.services.moderation.channel_access import ChannelAccessRevoker
from src.services.moderation.summary import SummaryBuilder

__all__ = [
    # Store
    "CaseDatabase",
    # Errors
    "GatewayError",
    "StoreError",
    "ValidationError",
    "ValidationErrorKind",
    # Models
    "BanRecord",
    "ChannelRef",
    "ChannelRevocationResult",
    "ModerationOutcome",
    "ModerationResult",
    "ModerationSummary",
    "Report",
    "SweepResult",
    "SweepStatus",
    "WarningRecord",
    # Services
    "ReportFactory",
    "build_report",
    "format_report",
    "ModerationService",
    "BanSweeper",
    "ChannelAccessRevoker",
    "SummaryBuilder",
]
