"""
Warden - Discord Gateways
=========================

discord.py implementations of the user directory, notification and access
control gateways. Each method raises on failure; the moderation engine
decides whether a failure is fatal.
"""

from typing import Optional, Sequence, Union

import discord

from src.core.logger import logger
from src.services.moderation.models import ChannelRef
from src.utils.discord_errors import log_http_error


def channel_ref(channel: discord.abc.GuildChannel) -> ChannelRef:
    """Reference a Discord channel by id and name."""
    return ChannelRef(id=channel.id, name=channel.name)


MESSAGE_CHAR_LIMIT: int = 2000


def split_dm_content(
    text: str,
    attachments: Sequence[str] = (),
    limit: int = MESSAGE_CHAR_LIMIT,
) -> list[str]:
    """
    Pack the DM text and attachment URLs into messages Discord will accept.

    Lines are never split across messages. A single line longer than
    ``limit`` is cut to fit and logged.
    """
    chunks: list[str] = []
    current = ""
    for line in [*text.split("\n"), *attachments]:
        if len(line) > limit:
            logger.warning("Moderation DM Line Truncated", [
                ("Length", str(len(line))),
                ("Limit", str(limit)),
            ])
            line = line[:limit]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            chunks.append(current)
        current = line
    if current or not chunks:
        chunks.append(current)
    return chunks


def _normalise_handle(handle: str) -> str:
    return handle.strip().lstrip("@")


def _matches(member: discord.Member, handle: str) -> bool:
    # str(member) is "name#1234" for legacy accounts and "name" otherwise
    return handle in (str(member), member.name, member.display_name)


class DiscordUserDirectory:
    """Resolves user handles against a guild's members."""

    def __init__(self, bot: discord.Client) -> None:
        self.bot = bot

    async def resolve(self, guild_id: int, handle: str) -> Optional[int]:
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            return None

        handle = _normalise_handle(handle)
        if not handle:
            return None

        member = discord.utils.find(lambda m: _matches(m, handle), guild.members)
        if member is not None:
            return member.id

        # Member cache may be partial; ask the gateway by name prefix
        name = handle.split("#", 1)[0]
        candidates = await guild.query_members(query=name, limit=10)
        member = discord.utils.find(lambda m: _matches(m, handle), candidates)
        return member.id if member else None


class DiscordNotifier:
    """Sends moderation DMs."""

    def __init__(self, bot: discord.Client) -> None:
        self.bot = bot

    async def send_direct_message(
        self,
        user_id: int,
        text: str,
        attachments: Sequence[str] = (),
    ) -> None:
        user = self.bot.get_user(user_id) or await self.bot.fetch_user(user_id)
        chunks = split_dm_content(text, attachments)
        try:
            for chunk in chunks:
                await user.send(content=chunk)
        except discord.HTTPException as e:
            log_http_error(e, "Moderation DM", [("User ID", str(user_id))])
            raise


class DiscordAccessControl:
    """Channel overrides, bans and unbans through the Discord API."""

    def __init__(self, bot: discord.Client) -> None:
        self.bot = bot

    def _guild(self, guild_id: int) -> discord.Guild:
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            raise LookupError(f"Guild {guild_id} is not available")
        return guild

    async def _member(self, guild: discord.Guild, user_id: int) -> discord.Member:
        return guild.get_member(user_id) or await guild.fetch_member(user_id)

    async def deny_channel_access(self, guild_id: int, user_id: int, channel: ChannelRef) -> None:
        guild = self._guild(guild_id)
        target: Optional[Union[discord.abc.GuildChannel, discord.Thread]] = guild.get_channel(channel.id)
        if target is None or isinstance(target, discord.Thread):
            raise LookupError(f"Channel {channel.name} ({channel.id}) is not available")

        member = await self._member(guild, user_id)
        try:
            await target.set_permissions(
                member,
                read_messages=False,
                send_messages=False,
                reason="Channel ban",
            )
        except discord.HTTPException as e:
            log_http_error(e, "Set Channel Permissions", [
                ("Channel", channel.name),
                ("User ID", str(user_id)),
            ])
            raise

    async def platform_ban(self, guild_id: int, user_id: int, reason: str) -> None:
        guild = self._guild(guild_id)
        try:
            await guild.ban(discord.Object(id=user_id), reason=reason)
        except discord.HTTPException as e:
            log_http_error(e, "Ban User", [("User ID", str(user_id))])
            raise

    async def platform_unban(self, guild_id: int, user_id: int) -> None:
        guild = self._guild(guild_id)
        try:
            await guild.unban(discord.Object(id=user_id), reason="Ban expired")
        except discord.NotFound:
            # Already unbanned on Discord's side; nothing left to lift
            logger.info("Unban Skipped - Not Banned On Discord", [
                ("Guild ID", str(guild_id)),
                ("User ID", str(user_id)),
            ])
        except discord.HTTPException as e:
            log_http_error(e, "Unban User", [("User ID", str(user_id))])
            raise


__all__ = [
    "channel_ref",
    "split_dm_content",
    "DiscordUserDirectory",
    "DiscordNotifier",
    "DiscordAccessControl",
]
