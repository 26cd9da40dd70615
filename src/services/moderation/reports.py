"""
Warden - Report Factory
=======================

Validates and builds Report records. Nothing here writes to the store;
persisting a report is the caller's step.
"""

from typing import Optional, Sequence, Union

from src.core.logger import logger
from src.services.moderation.errors import GatewayError, ValidationError
from src.services.moderation.gateways import UserDirectory, call_gateway
from src.services.moderation.models import (
    Clock,
    Report,
    parse_timestamp,
    to_timestamp,
    utc_now,
)


def build_report(
    guild_id: int,
    user_id: int,
    created_at: str,
    description: Optional[str] = None,
    attachments: Optional[Sequence[str]] = None,
) -> Union[Report, ValidationError]:
    """
    Build a report for a user whose id is already known.

    Returns:
        The unpersisted Report, or ValidationError(EMPTY_REPORT) when there
        is neither a description nor an attachment.
    """
    description = description.strip() if description else None
    attachments = tuple(a for a in (attachments or ()) if a)

    if not description and not attachments:
        return ValidationError.empty_report()

    return Report(
        guild_id=guild_id,
        user_id=user_id,
        created_at=created_at,
        description=description or None,
        attachments=attachments,
    )


async def resolve_user(
    directory: UserDirectory,
    guild_id: int,
    handle: str,
    timeout: float,
) -> Optional[int]:
    """Resolve a handle, treating a directory failure as no match."""
    try:
        return await call_gateway("Resolve User", directory.resolve(guild_id, handle), timeout)
    except GatewayError as e:
        logger.warning("User Lookup Failed", [
            ("Guild ID", str(guild_id)),
            ("Handle", handle),
            ("Error", str(e)),
        ])
        return None


class ReportFactory:
    """Turns a moderator's input (a handle plus evidence) into a Report."""

    def __init__(self, directory: UserDirectory, timeout: float, clock: Clock = utc_now) -> None:
        self.directory = directory
        self.timeout = timeout
        self.clock = clock

    async def create(
        self,
        guild_id: int,
        user_handle: str,
        description: Optional[str] = None,
        attachments: Optional[Sequence[str]] = None,
    ) -> Union[Report, ValidationError]:
        """
        Resolve the handle and build a report stamped with the current time.

        Returns:
            Report on success, ValidationError(USER_NOT_RESOLVED) when the
            handle matches nobody, ValidationError(EMPTY_REPORT) when there
            is no evidence.
        """
        user_id = await resolve_user(self.directory, guild_id, user_handle, self.timeout)
        if user_id is None:
            return ValidationError.user_not_resolved(user_handle)

        return build_report(
            guild_id,
            user_id,
            to_timestamp(self.clock()),
            description=description,
            attachments=attachments,
        )


def format_report(report: Report) -> str:
    """One-line rendering of a report for moderator messages."""
    attachments = ", ".join(report.attachments) if report.attachments else "no attachment"
    when = parse_timestamp(report.created_at).strftime("%Y-%m-%d %H:%M UTC")
    return f"`{report.description or 'no description'}`: [{attachments}] at {when}"


__all__ = ["build_report", "resolve_user", "ReportFactory", "format_report"]
