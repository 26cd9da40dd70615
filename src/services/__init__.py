"""
Warden - Services Package
=========================

Backend services. The moderation engine lives in ``src.services.moderation``.
"""

from src.services.moderation import (
    BanSweeper,
    CaseDatabase,
    ChannelAccessRevoker,
    ModerationService,
    ReportFactory,
    SummaryBuilder,
)

__all__ = [
    "BanSweeper",
    "CaseDatabase",
    "ChannelAccessRevoker",
    "ModerationService",
    "ReportFactory",
    "SummaryBuilder",
]
