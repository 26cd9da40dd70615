"""
Warden - Case Database Core
===========================

Base database class with connection handling and schema.

A ban row is the only record that ever changes
after insert (``active`` 1 -> 0). A partial unique index keeps at most one
active ban per (guild, user); writers still check first and treat a
conflict on insert as "already banned".
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from src.core.config import DATABASE_TIMEOUT
from src.core.logger import logger
from src.services.moderation.errors import StoreError


class DatabaseCore:
    """
    Base database class with connection handling and schema management.

    Uses a persistent connection with WAL mode. Thread-safe via a threading
    lock around every statement, so the async wrappers can run calls in
    worker threads.
    """

    SCHEMA_VERSION = 1

    TABLES = frozenset({"reports", "warnings", "bans", "schema_version"})

    def __init__(self, db_path: str = "data/warden.db") -> None:
        """Initialize database with persistent connection."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()

        self._connection: Optional[sqlite3.Connection] = None
        self._connect()
        self._init_database()

    def _connect(self) -> None:
        """Create persistent connection."""
        self._connection = sqlite3.connect(
            self.db_path,
            check_same_thread=False,
            timeout=DATABASE_TIMEOUT,
        )
        self._connection.execute("PRAGMA journal_mode=WAL")
        self._connection.execute("PRAGMA synchronous=NORMAL")

        logger.tree("Database Connection Established", [
            ("Path", str(self.db_path)),
            ("Mode", "WAL"),
        ], emoji="🗄️")

    def _get_connection(self) -> sqlite3.Connection:
        """Get the persistent database connection."""
        if self._connection is None:
            self._connect()
        return self._connection

    @contextmanager
    def _cursor(self, operation: str) -> Iterator[sqlite3.Cursor]:
        """
        Run a unit of work under the lock.

        Commits on success and rolls back on failure; sqlite errors surface
        as StoreError tagged with ``operation``.
        """
        with self._lock:
            conn = self._get_connection()
            try:
                cursor = conn.cursor()
                yield cursor
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logger.error("Database Operation Failed", [
                    ("Operation", operation),
                    ("Error", str(e)),
                ])
                raise StoreError(operation, e) from e

    def close(self) -> None:
        """Close the database connection and checkpoint WAL."""
        with self._lock:
            if self._connection:
                try:
                    self._connection.execute("PRAGMA wal_checkpoint(TRUNCATE)")
                    self._connection.close()
                    logger.tree("Database Connection Closed", [
                        ("WAL", "Checkpointed"),
                    ], emoji="🗄️")
                except sqlite3.Error as e:
                    logger.error("Database Checkpoint Failed", [("Error", str(e))])
                    try:
                        self._connection.close()
                    except sqlite3.Error:
                        pass
                finally:
                    self._connection = None

    def health_check(self) -> bool:
        """Verify database connectivity."""
        with self._lock:
            try:
                self._get_connection().execute("SELECT 1").fetchone()
                return True
            except sqlite3.Error:
                return False

    def table_exists(self, table: str) -> bool:
        """Check whether a table is present (used to detect a missing collection)."""
        if table not in self.TABLES:
            raise ValueError(f"Unknown table: {table}")
        with self._cursor("table_exists") as cursor:
            cursor.execute(
                "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
                (table,)
            )
            return cursor.fetchone() is not None

    def _init_database(self) -> None:
        """Create tables and record the schema version."""
        with self._cursor("init_database") as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    version INTEGER NOT NULL DEFAULT 0,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("SELECT version FROM schema_version WHERE id = 1")
            row = cursor.fetchone()
            current_version = row[0] if row else 0

            if current_version == 0:
                cursor.execute("INSERT OR IGNORE INTO schema_version (id, version) VALUES (1, 0)")

            self._create_base_tables(cursor)

            if current_version < self.SCHEMA_VERSION:
                cursor.execute(
                    "UPDATE schema_version SET version = ?, updated_at = CURRENT_TIMESTAMP WHERE id = 1",
                    (self.SCHEMA_VERSION,)
                )
                logger.tree("Database Schema Ready", [
                    ("From Version", str(current_version)),
                    ("To Version", str(self.SCHEMA_VERSION)),
                ], emoji="🗳️")

    def _create_base_tables(self, cursor: sqlite3.Cursor) -> None:
        """Create all base tables (idempotent)."""
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS reports (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                description TEXT,
                attachments TEXT NOT NULL DEFAULT '[]',
                created_at TEXT NOT NULL
            )
        """)

        # report_id is a weak reference: no foreign key on purpose
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS warnings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                date TEXT NOT NULL,
                report_id INTEGER
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS bans (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                date TEXT NOT NULL,
                active INTEGER NOT NULL DEFAULT 1,
                reason TEXT NOT NULL,
                report_id INTEGER
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_reports_user ON reports(guild_id, user_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_warnings_user_date ON warnings(guild_id, user_id, date DESC)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_bans_active_date ON bans(guild_id, active, date)")
        cursor.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS uq_bans_one_active "
            "ON bans(guild_id, user_id) WHERE active = 1"
        )
