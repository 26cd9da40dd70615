"""
Warden - Moderation Gateways
============================

Interfaces of the external collaborators the moderation engine talks to,
and the timeout wrapper every call to them goes through.

Discord implementations live in ``discord_gateways.py``; tests supply
in-memory fakes.
"""

import asyncio
from typing import Awaitable, Optional, Protocol, Sequence, TypeVar

from src.services.moderation.errors import GatewayError
from src.services.moderation.models import ChannelRef

T = TypeVar("T")


class UserDirectory(Protocol):
    """Resolves a handle to a stable user id within a guild."""

    async def resolve(self, guild_id: int, handle: str) -> Optional[int]:
        ...


class NotificationGateway(Protocol):
    """Delivers direct messages. Raises on failure."""

    async def send_direct_message(
        self,
        user_id: int,
        text: str,
        attachments: Sequence[str] = (),
    ) -> None:
        ...


class AccessControlGateway(Protocol):
    """Channel permission overrides and platform bans. Raises on failure."""

    async def deny_channel_access(self, guild_id: int, user_id: int, channel: ChannelRef) -> None:
        ...

    async def platform_ban(self, guild_id: int, user_id: int, reason: str) -> None:
        ...

    async def platform_unban(self, guild_id: int, user_id: int) -> None:
        ...


async def call_gateway(operation: str, awaitable: Awaitable[T], timeout: float) -> T:
    """
    Await an external call bounded by ``timeout``.

    Any failure, the timeout included, is re-raised as GatewayError.

    Args:
        operation: Name used in the error message and logs
        awaitable: The pending gateway call
        timeout: Seconds to wait

    Raises:
        GatewayError: If the call raised or timed out
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        raise GatewayError(operation, e) from e


__all__ = [
    "UserDirectory",
    "NotificationGateway",
    "AccessControlGateway",
    "call_gateway",
]
