"""
Warden - Case Database Package
==============================

SQLite case record store split into mixins per record kind.
"""

from src.services.moderation.db.database import CaseDatabase

__all__ = ["CaseDatabase"]
