"""
Warden - Warnings Database Mixin
================================

Warning insert and history operations.
"""

import asyncio
from typing import Optional

from src.services.moderation.models import WarningRecord


def _row_to_warning(row: tuple) -> WarningRecord:
    return WarningRecord(id=row[0], guild_id=row[1], user_id=row[2], date=row[3], report_id=row[4])


class WarningsMixin:
    """Mixin for warning operations."""

    def insert_warning(
        self,
        guild_id: int,
        user_id: int,
        date: str,
        report_id: Optional[int] = None
    ) -> int:
        """Persist a warning and return its generated id."""
        with self._cursor("insert_warning") as cursor:
            cursor.execute(
                "INSERT INTO warnings (guild_id, user_id, date, report_id) VALUES (?, ?, ?, ?)",
                (guild_id, user_id, date, report_id)
            )
            return cursor.lastrowid

    async def insert_warning_async(
        self,
        guild_id: int,
        user_id: int,
        date: str,
        report_id: Optional[int] = None
    ) -> int:
        """Async wrapper for insert_warning."""
        return await asyncio.to_thread(self.insert_warning, guild_id, user_id, date, report_id)

    def get_recent_warnings(self, guild_id: int, user_id: int, limit: int) -> list[WarningRecord]:
        """Most recent warnings for a user, newest first."""
        with self._cursor("get_recent_warnings") as cursor:
            cursor.execute(
                """SELECT id, guild_id, user_id, date, report_id FROM warnings
                   WHERE guild_id = ? AND user_id = ?
                   ORDER BY date DESC, id DESC LIMIT ?""",
                (guild_id, user_id, limit)
            )
            return [_row_to_warning(r) for r in cursor.fetchall()]

    async def get_recent_warnings_async(self, guild_id: int, user_id: int, limit: int) -> list[WarningRecord]:
        """Async wrapper for get_recent_warnings."""
        return await asyncio.to_thread(self.get_recent_warnings, guild_id, user_id, limit)

    async def get_latest_warning_async(self, guild_id: int, user_id: int) -> Optional[WarningRecord]:
        """Newest warning for a user, if any."""
        recent = await self.get_recent_warnings_async(guild_id, user_id, 1)
        return recent[0] if recent else None

    def count_warnings(self, guild_id: int, user_id: int) -> int:
        """Number of warnings issued to a user."""
        with self._cursor("count_warnings") as cursor:
            cursor.execute(
                "SELECT COUNT(*) FROM warnings WHERE guild_id = ? AND user_id = ?",
                (guild_id, user_id)
            )
            return cursor.fetchone()[0]

    async def count_warnings_async(self, guild_id: int, user_id: int) -> int:
        """Async wrapper for count_warnings."""
        return await asyncio.to_thread(self.count_warnings, guild_id, user_id)
