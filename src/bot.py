"""
Warden Moderation Bot - Main Bot Class
======================================

Discord client that wires the moderation engine to its Discord gateways.

ARCHITECTURE OVERVIEW:
======================
┌─────────────────────────────────────────────────────────────────┐
│                        BOT LAYER (bot.py)                        │
│  - Discord client setup and event routing                       │
│  - Service construction and lifecycle                           │
└─────────────────────────────────────────────────────────────────┘
                              │
        ┌─────────────────────┼─────────────────────┐
        ▼                     ▼                     ▼
┌───────────────┐    ┌─────────────────┐   ┌────────────────┐
│   HANDLERS    │    │    SERVICES     │   │    COMMANDS    │
│ - ready.py    │    │ - moderation/   │   │ - moderation.py│
│ - shutdown.py │    │   (store, rules,│   │   (slash cmds) │
└───────────────┘    │    scheduler)   │   └────────────────┘
                     └─────────────────┘

KEY DESIGN DECISIONS:
=====================
1. The moderation engine only talks to Discord through gateway objects,
   so everything under services/moderation runs without a connection.
2. Services are built in setup_hook, before commands can fire.
3. The ban expiry scheduler starts in on_ready and stops before the
   database closes.
"""

from typing import Optional

import discord
from discord.ext import commands

from src.core.config import DATABASE_PATH, SWEEP_INTERVAL_MINUTES, ModerationConfig
from src.core.logger import logger
from src.handlers.ready import on_ready_handler
from src.handlers.shutdown import shutdown_handler
from src.services.moderation import (
    BanSweeper,
    CaseDatabase,
    ChannelAccessRevoker,
    ModerationService,
    ReportFactory,
    SummaryBuilder,
)
from src.services.moderation.discord_gateways import (
    DiscordAccessControl,
    DiscordNotifier,
    DiscordUserDirectory,
)
from src.services.moderation.scheduler import BanExpiryScheduler


# =============================================================================
# WardenBot Class
# =============================================================================

class WardenBot(commands.Bot):
    """
    Main Discord bot class for Warden.

    INTENTS REQUIRED:
    - guilds: Guild, channel and role info
    - members: Resolve handles and read moderator roles
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self, config: Optional[ModerationConfig] = None) -> None:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True

        super().__init__(
            command_prefix="!",  # Not used - bot uses slash commands only
            intents=intents,
            help_command=None,
        )

        self.moderation_config: ModerationConfig = config or ModerationConfig.from_env()

        # Built in setup_hook
        self.db: Optional[CaseDatabase] = None
        self.report_factory: Optional[ReportFactory] = None
        self.moderation_service: Optional[ModerationService] = None
        self.ban_sweeper: Optional[BanSweeper] = None
        self.channel_revoker: Optional[ChannelAccessRevoker] = None
        self.summary_builder: Optional[SummaryBuilder] = None
        self.ban_expiry_scheduler: Optional[BanExpiryScheduler] = None

        # Discord can fire on_ready more than once (reconnects, resume)
        self._ready_initialized: bool = False

    # =========================================================================
    # Event Handlers
    # =========================================================================

    async def setup_hook(self) -> None:
        """Build services and load command cogs."""
        config = self.moderation_config

        self.db = CaseDatabase(DATABASE_PATH)

        directory = DiscordUserDirectory(self)
        notifier = DiscordNotifier(self)
        access = DiscordAccessControl(self)

        self.report_factory = ReportFactory(directory, config.gateway_timeout)
        self.moderation_service = ModerationService(self.db, notifier, access, config)
        self.ban_sweeper = BanSweeper(self.db, access, config)
        self.channel_revoker = ChannelAccessRevoker(self.db, directory, access, config)
        self.summary_builder = SummaryBuilder(self.db, directory, config)
        self.ban_expiry_scheduler = BanExpiryScheduler(self, self.ban_sweeper, SWEEP_INTERVAL_MINUTES)

        await self.load_extension("src.commands.moderation")

        logger.info("Bot setup complete - commands will sync on ready", [
            ("Database", DATABASE_PATH),
        ])

    async def on_ready(self) -> None:
        """Event handler called when bot is ready."""
        if self._ready_initialized:
            logger.info("🔄 Bot Reconnected (skipping re-initialization)")
            return

        self._ready_initialized = True
        await on_ready_handler(self)

    async def on_resumed(self) -> None:
        """Event handler for bot resuming connection after disconnect."""
        logger.info("Bot Connection Resumed")

    async def close(self) -> None:
        """Cleanup when bot is shutting down."""
        await shutdown_handler(self)
        await super().close()


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["WardenBot"]
