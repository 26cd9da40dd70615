"""
Warden - Role Permissions
=========================

Role-level checks for moderation commands.
"""

from typing import Iterable

import discord

from src.core.config import ROLE_LEVELS, SUSPENDED_LEVEL, SUSPENDED_ROLE_NAME


def highest_role_level(role_names: Iterable[str]) -> int:
    """
    Highest known level among the given role names.

    Unknown roles are ignored. A suspended member is pinned to
    SUSPENDED_LEVEL whatever else they hold.
    """
    highest = 0
    for name in role_names:
        if name == SUSPENDED_ROLE_NAME:
            return SUSPENDED_LEVEL
        highest = max(highest, ROLE_LEVELS.get(name, 0))
    return highest


def has_permission(member: discord.Member, min_level: int) -> bool:
    """Whether the member's highest role ranks strictly above ``min_level``."""
    if not hasattr(member, "roles"):
        return False
    return highest_role_level(role.name for role in member.roles) > min_level


__all__ = ["highest_role_level", "has_permission"]
