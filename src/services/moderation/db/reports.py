"""
Warden - Reports Database Mixin
===============================

Report insert and lookup operations.
"""

import asyncio
import json
from typing import Optional

from src.services.moderation.models import Report


def _row_to_report(row: tuple) -> Report:
    return Report(
        id=row[0],
        guild_id=row[1],
        user_id=row[2],
        description=row[3],
        attachments=tuple(json.loads(row[4] or "[]")),
        created_at=row[5],
    )


class ReportsMixin:
    """Mixin for report operations."""

    def insert_report(self, report: Report) -> int:
        """Persist a report and return its generated id."""
        with self._cursor("insert_report") as cursor:
            cursor.execute(
                """INSERT INTO reports (guild_id, user_id, description, attachments, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    report.guild_id,
                    report.user_id,
                    report.description,
                    json.dumps(list(report.attachments)),
                    report.created_at,
                )
            )
            return cursor.lastrowid

    async def insert_report_async(self, report: Report) -> int:
        """Async wrapper for insert_report."""
        return await asyncio.to_thread(self.insert_report, report)

    def get_report(self, report_id: int) -> Optional[Report]:
        """Fetch one report by id."""
        with self._cursor("get_report") as cursor:
            cursor.execute(
                "SELECT id, guild_id, user_id, description, attachments, created_at FROM reports WHERE id = ?",
                (report_id,)
            )
            row = cursor.fetchone()
            return _row_to_report(row) if row else None

    async def get_report_async(self, report_id: int) -> Optional[Report]:
        """Async wrapper for get_report."""
        return await asyncio.to_thread(self.get_report, report_id)

    def count_reports(self, guild_id: int, user_id: int) -> int:
        """Number of reports filed about a user."""
        with self._cursor("count_reports") as cursor:
            cursor.execute(
                "SELECT COUNT(*) FROM reports WHERE guild_id = ? AND user_id = ?",
                (guild_id, user_id)
            )
            return cursor.fetchone()[0]

    async def count_reports_async(self, guild_id: int, user_id: int) -> int:
        """Async wrapper for count_reports."""
        return await asyncio.to_thread(self.count_reports, guild_id, user_id)
