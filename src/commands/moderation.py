"""
Warden - Moderation Commands
============================

Slash commands for moderators.

Commands:
- /report - File a report against a user
- /warn - Report and warn a user (escalates to a ban when warned too often)
- /ban - Report and ban a user
- /channelban - Take read/send permissions away in up to three channels
- /modsummary - Show a user's moderation history
"""

from typing import TYPE_CHECKING, Optional, Union

import discord
from discord import app_commands
from discord.ext import commands

from src.core.config import MOD_COMMAND_MIN_LEVEL
from src.core.logger import logger
from src.services.moderation.discord_gateways import channel_ref
from src.services.moderation.embeds import build_summary_embed
from src.services.moderation.errors import StoreError, ValidationError
from src.services.moderation.models import Report
from src.utils.permissions import has_permission

if TYPE_CHECKING:
    from src.bot import WardenBot


STORE_FAILURE_MESSAGE = "Something went wrong saving this. Please try again later."
NO_PERMISSION_MESSAGE = "You do not have permission to use this command."


def _invoker(interaction: discord.Interaction) -> str:
    return f"{interaction.user.name} ({interaction.user.id})"


def _attachment_urls(*attachments: Optional[discord.Attachment]) -> list[str]:
    return [a.url for a in attachments if a is not None]


# =============================================================================
# Moderation Cog
# =============================================================================

class ModerationCog(commands.Cog):
    """Cog for report, warning, ban and summary commands."""

    def __init__(self, bot: "WardenBot") -> None:
        self.bot = bot

    async def _check_access(self, interaction: discord.Interaction, command: str) -> bool:
        """Reject the interaction unless it comes from a moderator inside a guild."""
        if interaction.guild is None:
            await interaction.response.send_message(
                "This command can only be used in a server.",
                ephemeral=True
            )
            return False

        if not has_permission(interaction.user, MOD_COMMAND_MIN_LEVEL):
            logger.warning(f"/{command} Command Denied - Insufficient Role", [
                ("Invoked By", _invoker(interaction)),
            ])
            await interaction.response.send_message(NO_PERMISSION_MESSAGE, ephemeral=True)
            return False

        return True

    async def _build_report(
        self,
        interaction: discord.Interaction,
        user: str,
        description: Optional[str],
        attachments: list[str],
    ) -> Optional[Report]:
        """Resolve and validate; reply with the validation message on failure."""
        report: Union[Report, ValidationError] = await self.bot.report_factory.create(
            interaction.guild.id,
            user,
            description=description,
            attachments=attachments,
        )
        if isinstance(report, ValidationError):
            logger.info("Report Rejected", [
                ("Invoked By", _invoker(interaction)),
                ("User Param", user),
                ("Reason", report.kind.value),
            ])
            await interaction.followup.send(report.message, ephemeral=True)
            return None
        return report

    # =========================================================================
    # /report
    # =========================================================================

    @app_commands.command(name="report", description="File a report against a user")
    @app_commands.describe(
        user="Username of the reported user",
        description="What happened",
        attachment="Screenshot or other evidence",
    )
    @app_commands.default_permissions(manage_messages=True)
    async def report(
        self,
        interaction: discord.Interaction,
        user: str,
        description: Optional[str] = None,
        attachment: Optional[discord.Attachment] = None,
    ) -> None:
        """File a report without warning the user."""
        logger.info("/report Command Invoked", [
            ("Invoked By", _invoker(interaction)),
            ("User Param", user),
        ])
        if not await self._check_access(interaction, "report"):
            return

        await interaction.response.defer(ephemeral=True)

        report = await self._build_report(interaction, user, description, _attachment_urls(attachment))
        if report is None:
            return

        try:
            result = await self.bot.moderation_service.file_report(report)
        except StoreError:
            await interaction.followup.send(STORE_FAILURE_MESSAGE, ephemeral=True)
            return

        await interaction.followup.send(result.message, ephemeral=True)

    # =========================================================================
    # /warn
    # =========================================================================

    @app_commands.command(name="warn", description="Report and warn a user")
    @app_commands.describe(
        user="Username of the user to warn",
        description="Reason for the warning",
        attachment="Screenshot or other evidence",
    )
    @app_commands.default_permissions(manage_messages=True)
    async def warn(
        self,
        interaction: discord.Interaction,
        user: str,
        description: Optional[str] = None,
        attachment: Optional[discord.Attachment] = None,
    ) -> None:
        """Warn a user, escalating to a ban after too many recent warnings."""
        logger.info("/warn Command Invoked", [
            ("Invoked By", _invoker(interaction)),
            ("User Param", user),
        ])
        if not await self._check_access(interaction, "warn"):
            return

        await interaction.response.defer(ephemeral=True)

        report = await self._build_report(interaction, user, description, _attachment_urls(attachment))
        if report is None:
            return

        try:
            result = await self.bot.moderation_service.file_warning(report)
        except StoreError:
            await interaction.followup.send(STORE_FAILURE_MESSAGE, ephemeral=True)
            return

        message = result.message
        if result.notification is not None and not result.notification.ok:
            message += "\nCould not DM the user."
        await interaction.followup.send(message, ephemeral=True)

    # =========================================================================
    # /ban
    # =========================================================================

    @app_commands.command(name="ban", description="Report and ban a user")
    @app_commands.describe(
        user="Username of the user to ban",
        description="Reason for the ban",
        attachment="Screenshot or other evidence",
    )
    @app_commands.default_permissions(ban_members=True)
    async def ban(
        self,
        interaction: discord.Interaction,
        user: str,
        description: Optional[str] = None,
        attachment: Optional[discord.Attachment] = None,
    ) -> None:
        """Ban a user. The ban is lifted by the expiry sweep after the retention period."""
        logger.info("/ban Command Invoked", [
            ("Invoked By", _invoker(interaction)),
            ("User Param", user),
        ])
        if not await self._check_access(interaction, "ban"):
            return

        await interaction.response.defer(ephemeral=True)

        report = await self._build_report(interaction, user, description, _attachment_urls(attachment))
        if report is None:
            return

        try:
            result = await self.bot.moderation_service.file_ban(report)
        except StoreError:
            await interaction.followup.send(STORE_FAILURE_MESSAGE, ephemeral=True)
            return

        await interaction.followup.send(result.message, ephemeral=True)

    # =========================================================================
    # /channelban
    # =========================================================================

    @app_commands.command(name="channelban", description="Take channel permissions away from a user")
    @app_commands.describe(
        user="Username of the user",
        channel="Channel to revoke access to",
        channel2="Another channel",
        channel3="Another channel",
    )
    @app_commands.default_permissions(manage_channels=True)
    async def channelban(
        self,
        interaction: discord.Interaction,
        user: str,
        channel: discord.TextChannel,
        channel2: Optional[discord.TextChannel] = None,
        channel3: Optional[discord.TextChannel] = None,
    ) -> None:
        """Deny read and send in each given channel."""
        channels = [c for c in (channel, channel2, channel3) if c is not None]
        logger.info("/channelban Command Invoked", [
            ("Invoked By", _invoker(interaction)),
            ("User Param", user),
            ("Channels", ", ".join(f"#{c.name}" for c in channels)),
        ])
        if not await self._check_access(interaction, "channelban"):
            return

        await interaction.response.defer(ephemeral=True)

        result = await self.bot.channel_revoker.revoke_channel_access(
            interaction.guild.id,
            user,
            [channel_ref(c) for c in channels],
        )

        message = result.message
        if result.user_id is not None and result.report_error:
            message += "\nCould not save the report for this channel ban."
        await interaction.followup.send(message, ephemeral=True)

    # =========================================================================
    # /modsummary
    # =========================================================================

    @app_commands.command(name="modsummary", description="Show a user's moderation history")
    @app_commands.describe(user="Username of the user to look up")
    @app_commands.default_permissions(manage_messages=True)
    async def modsummary(
        self,
        interaction: discord.Interaction,
        user: str,
    ) -> None:
        """Show report and warning counts, ban status and the last warning."""
        logger.info("/modsummary Command Invoked", [
            ("Invoked By", _invoker(interaction)),
            ("User Param", user),
        ])
        if not await self._check_access(interaction, "modsummary"):
            return

        await interaction.response.defer(ephemeral=True)

        summary = await self.bot.summary_builder.build_summary(interaction.guild.id, user)
        if isinstance(summary, ValidationError):
            await interaction.followup.send(summary.message, ephemeral=True)
            return

        await interaction.followup.send(embed=build_summary_embed(summary), ephemeral=True)


# =============================================================================
# Setup Function
# =============================================================================

async def setup(bot: "WardenBot") -> None:
    """Load the moderation cog."""
    await bot.add_cog(ModerationCog(bot))
    logger.info("Moderation Cog Loaded", [
        ("Commands", "/report, /warn, /ban, /channelban, /modsummary"),
    ])


__all__ = ["ModerationCog", "setup"]
