"""
Warden - Bans Database Mixin
============================

Ban record operations: active-ban lookup, insert, expiry queries and the
batched deactivation used by the sweep.
"""

import asyncio
import sqlite3
from typing import Iterable, Optional

from src.core.logger import logger
from src.services.moderation.models import BanRecord


BAN_COLUMNS = "id, guild_id, user_id, date, active, reason, report_id"


def _row_to_ban(row: tuple) -> BanRecord:
    return BanRecord(
        id=row[0],
        guild_id=row[1],
        user_id=row[2],
        date=row[3],
        active=bool(row[4]),
        reason=row[5],
        report_id=row[6],
    )


class BansMixin:
    """Mixin for ban operations."""

    def get_active_ban(self, guild_id: int, user_id: int) -> Optional[BanRecord]:
        """The user's active ban in a guild, if any."""
        with self._cursor("get_active_ban") as cursor:
            cursor.execute(
                f"SELECT {BAN_COLUMNS} FROM bans WHERE guild_id = ? AND user_id = ? AND active = 1 LIMIT 1",
                (guild_id, user_id)
            )
            row = cursor.fetchone()
            return _row_to_ban(row) if row else None

    async def get_active_ban_async(self, guild_id: int, user_id: int) -> Optional[BanRecord]:
        """Async wrapper for get_active_ban."""
        return await asyncio.to_thread(self.get_active_ban, guild_id, user_id)

    def insert_ban(
        self,
        guild_id: int,
        user_id: int,
        date: str,
        reason: str,
        report_id: Optional[int] = None
    ) -> Optional[int]:
        """
        Persist an active ban.

        Returns:
            The new ban id, or None if the user already has an active ban
            in this guild (lost a race with a concurrent insert).
        """
        with self._cursor("insert_ban") as cursor:
            try:
                cursor.execute(
                    "INSERT INTO bans (guild_id, user_id, date, active, reason, report_id) VALUES (?, ?, ?, 1, ?, ?)",
                    (guild_id, user_id, date, reason, report_id)
                )
            except sqlite3.IntegrityError as e:
                logger.debug("Active Ban Already Exists", [
                    ("Guild ID", str(guild_id)),
                    ("User ID", str(user_id)),
                    ("Error", str(e)),
                ])
                return None
            return cursor.lastrowid

    async def insert_ban_async(
        self,
        guild_id: int,
        user_id: int,
        date: str,
        reason: str,
        report_id: Optional[int] = None
    ) -> Optional[int]:
        """Async wrapper for insert_ban."""
        return await asyncio.to_thread(self.insert_ban, guild_id, user_id, date, reason, report_id)

    def get_latest_ban(self, guild_id: int, user_id: int) -> Optional[BanRecord]:
        """The user's most recent ban, active or not."""
        with self._cursor("get_latest_ban") as cursor:
            cursor.execute(
                f"""SELECT {BAN_COLUMNS} FROM bans WHERE guild_id = ? AND user_id = ?
                    ORDER BY date DESC, id DESC LIMIT 1""",
                (guild_id, user_id)
            )
            row = cursor.fetchone()
            return _row_to_ban(row) if row else None

    async def get_latest_ban_async(self, guild_id: int, user_id: int) -> Optional[BanRecord]:
        """Async wrapper for get_latest_ban."""
        return await asyncio.to_thread(self.get_latest_ban, guild_id, user_id)

    def get_expired_bans(self, guild_id: int, cutoff: str) -> list[BanRecord]:
        """Active bans in a guild issued at or before ``cutoff``."""
        with self._cursor("get_expired_bans") as cursor:
            cursor.execute(
                f"""SELECT {BAN_COLUMNS} FROM bans
                    WHERE guild_id = ? AND active = 1 AND date <= ?
                    ORDER BY date ASC, id ASC""",
                (guild_id, cutoff)
            )
            return [_row_to_ban(r) for r in cursor.fetchall()]

    async def get_expired_bans_async(self, guild_id: int, cutoff: str) -> list[BanRecord]:
        """Async wrapper for get_expired_bans."""
        return await asyncio.to_thread(self.get_expired_bans, guild_id, cutoff)

    def deactivate_bans(self, ban_ids: Iterable[int]) -> int:
        """
        Mark bans inactive in one batch.

        Each update only applies to a row that is still active, so a ban
        handled by an earlier batch is left alone.

        Returns:
            Number of rows flipped to inactive
        """
        params = [(ban_id,) for ban_id in ban_ids]
        if not params:
            return 0
        with self._cursor("deactivate_bans") as cursor:
            cursor.executemany("UPDATE bans SET active = 0 WHERE id = ? AND active = 1", params)
            return cursor.rowcount

    async def deactivate_bans_async(self, ban_ids: Iterable[int]) -> int:
        """Async wrapper for deactivate_bans."""
        return await asyncio.to_thread(self.deactivate_bans, list(ban_ids))

    def bans_available(self) -> bool:
        """Whether the bans table exists."""
        return self.table_exists("bans")

    async def bans_available_async(self) -> bool:
        """Async wrapper for bans_available."""
        return await asyncio.to_thread(self.bans_available)
