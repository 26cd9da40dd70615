"""
Warden - Combined Case Database
===============================

SQLite case record store combining all mixins.
"""

from src.services.moderation.db.core import DatabaseCore
from src.services.moderation.db.reports import ReportsMixin
from src.services.moderation.db.warnings import WarningsMixin
from src.services.moderation.db.bans import BansMixin


class CaseDatabase(
    ReportsMixin,
    WarningsMixin,
    BansMixin,
    DatabaseCore
):
    """
    Complete case record store.

    Inherits from:
    - DatabaseCore: Connection handling, schema
    - ReportsMixin: Report records
    - WarningsMixin: Warning records
    - BansMixin: Ban records and the sweep's batched update
    """

    def __init__(self, db_path: str = "data/warden.db") -> None:
        """Initialize database with all mixins."""
        super().__init__(db_path)


__all__ = ["CaseDatabase"]
