"""
Warden - Slash Commands Package
===============================

Discord slash commands for moderators.

Available Commands:
- /report - File a report against a user
- /warn - Report and warn a user
- /ban - Report and ban a user
- /channelban - Take channel permissions away from a user
- /modsummary - Show a user's moderation history
"""

from src.commands.moderation import ModerationCog

__all__ = [
    "ModerationCog",
]
