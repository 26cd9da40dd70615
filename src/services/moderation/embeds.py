"""
Warden - Moderation Embeds
==========================

Embed building functions for moderator-facing output.
"""

from datetime import datetime, timezone

import discord

from src.core.config import EMBED_COLOR_MODERATION
from src.services.moderation.models import ModerationSummary


UNAVAILABLE = "Unavailable"


def build_summary_embed(summary: ModerationSummary) -> discord.Embed:
    """Build the moderation summary embed for one user."""
    embed = discord.Embed(
        title=f"Moderation Summary on {summary.user_handle}",
        color=EMBED_COLOR_MODERATION,
        timestamp=datetime.now(timezone.utc)
    )

    embed.add_field(
        name="Total Reports",
        value=str(summary.total_reports) if summary.total_reports is not None else UNAVAILABLE,
        inline=True
    )
    embed.add_field(
        name="Total Warnings",
        value=str(summary.total_warnings) if summary.total_warnings is not None else UNAVAILABLE,
        inline=True
    )
    embed.add_field(name="Ban Status", value=summary.ban_status, inline=False)
    embed.add_field(name="Last warning", value=summary.last_warning[:1024], inline=False)

    return embed


__all__ = ["build_summary_embed"]
