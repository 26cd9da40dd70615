"""
Warden Moderation Bot - Logger
==============================

Tree-style logger used across the bot. Every entry is a title followed by
(key, value) branches, written to the console and to a daily log folder.

Features:
- Unique run ID per process for tracking sessions
- UTC timestamps (moderation records are stored in UTC as well)
- Console and file output simultaneously
- Daily log folders with separate log and error files
- Automatic cleanup of old log folders

Log Structure:
    logs/
    ├── 2026-10-18/
    │   ├── Warden-2026-10-18.log
    │   └── Warden-Errors-2026-10-18.log
    └── ...

Set ``WARDEN_LOGS_DIR`` to move the log folders, ``DEBUG=1`` to enable
debug entries.
"""

import os
import shutil
import uuid
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Tuple, Optional, Any


# =============================================================================
# Constants
# =============================================================================

# Log retention period in days
LOG_RETENTION_DAYS = 7

DEFAULT_LOGS_DIR = Path(__file__).parent.parent.parent / "logs"


# =============================================================================
# Tree Symbols
# =============================================================================

class TreeSymbols:
    """Box-drawing characters for tree formatting."""
    BRANCH = "├─"
    LAST = "└─"
    PIPE = "│ "
    SPACE = "  "


# =============================================================================
# MiniTreeLogger
# =============================================================================

class MiniTreeLogger:
    """Logger with tree-style formatting and daily log rotation."""

    def __init__(self, logs_dir: Optional[Path] = None) -> None:
        self.run_id: str = str(uuid.uuid4())[:8]

        self.logs_base_dir = Path(logs_dir or os.getenv("WARDEN_LOGS_DIR") or DEFAULT_LOGS_DIR)
        self.logs_base_dir.mkdir(parents=True, exist_ok=True)

        self.current_date = self._today()
        self._set_log_files()

        self._cleanup_old_logs()
        self._write_header("NEW SESSION - RUN ID")

    # =========================================================================
    # Private Methods - Setup
    # =========================================================================

    @staticmethod
    def _today() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d")

    def _set_log_files(self) -> None:
        self.log_dir = self.logs_base_dir / self.current_date
        self.log_dir.mkdir(exist_ok=True)
        self.log_file: Path = self.log_dir / f"Warden-{self.current_date}.log"
        self.error_file: Path = self.log_dir / f"Warden-Errors-{self.current_date}.log"

    def _check_date_rotation(self) -> None:
        """Rotate to a new daily folder when the date changes."""
        current_date = self._today()
        if current_date != self.current_date:
            self.current_date = current_date
            self._set_log_files()
            self._write_header("LOG ROTATION - Continuing session")

    def _cleanup_old_logs(self) -> None:
        """Delete daily log folders older than the retention period."""
        now = datetime.now(timezone.utc)
        deleted_count = 0

        for folder in self.logs_base_dir.iterdir():
            if not folder.is_dir():
                continue
            try:
                folder_date = datetime.strptime(folder.name, "%Y-%m-%d").replace(tzinfo=timezone.utc)
            except ValueError:
                continue

            if (now - folder_date).days > LOG_RETENTION_DAYS:
                try:
                    shutil.rmtree(folder)
                    deleted_count += 1
                except OSError as e:
                    print(f"[LOG CLEANUP ERROR] {folder.name}: {e}")

        if deleted_count > 0:
            print(f"[LOG CLEANUP] Deleted {deleted_count} old log folders (>{LOG_RETENTION_DAYS} days)")

    def _write_header(self, label: str) -> None:
        header = (
            f"\n{'='*60}\n"
            f"{label}: {self.run_id}\n"
            f"{self._get_timestamp()}\n"
            f"{'='*60}\n\n"
        )
        self._append(self.log_file, header)
        self._append(self.error_file, header)

    # =========================================================================
    # Private Methods - Output
    # =========================================================================

    def _get_timestamp(self) -> str:
        return datetime.now(timezone.utc).strftime("[%H:%M:%S UTC]")

    @staticmethod
    def _append(path: Path, text: str) -> None:
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(text)
        except (OSError, IOError):
            pass

    def _write(self, message: str, emoji: str = "", to_error: bool = False) -> None:
        """Write a timestamped line to the console and log file(s)."""
        self._check_date_rotation()

        prefix = f"{self._get_timestamp()} {emoji}" if emoji else self._get_timestamp()
        full_message = f"{prefix} {message}"

        print(full_message)
        self._append(self.log_file, f"{full_message}\n")
        if to_error:
            self._append(self.error_file, f"{full_message}\n")

    def _write_raw(self, message: str, to_error: bool = False) -> None:
        """Write a tree branch line without timestamp."""
        print(message)
        self._append(self.log_file, f"{message}\n")
        if to_error:
            self._append(self.error_file, f"{message}\n")

    def _emit(
        self,
        title: str,
        items: Optional[List[Tuple[str, Any]]],
        emoji: str,
        status: str,
        to_error: bool = False,
    ) -> None:
        self._write(title, emoji, to_error=to_error)

        if not items:
            items = [("Status", status)]

        for i, (key, value) in enumerate(items):
            prefix = TreeSymbols.LAST if i == len(items) - 1 else TreeSymbols.BRANCH
            self._write_raw(f"  {prefix} {key}: {value}", to_error=to_error)

        self._write_raw("", to_error=to_error)

    # =========================================================================
    # Public Methods - Log Levels
    # =========================================================================

    def info(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log an informational message as a tree."""
        self._emit(msg, details, "ℹ️", "OK")

    def warning(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log a warning (also written to the error log)."""
        self._emit(msg, details, "⚠️", "Warning", to_error=True)

    def error(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log an error (also written to the error log)."""
        self._emit(msg, details, "❌", "Failed", to_error=True)

    def debug(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log a debug message (only if the DEBUG env var is set)."""
        if os.getenv("DEBUG", "").lower() in ("1", "true", "yes"):
            self._emit(msg, details, "🔍", "Debug")

    def exception(self, msg: str, details: Optional[List[Tuple[str, Any]]] = None) -> None:
        """Log an error followed by the current traceback."""
        self._emit(msg, details, "💥", "Exception", to_error=True)
        tb = traceback.format_exc()
        self._append(self.log_file, f"{tb}\n")
        self._append(self.error_file, f"{tb}\n")

    def tree(
        self,
        title: str,
        items: List[Tuple[str, Any]],
        emoji: str = "📦"
    ) -> None:
        """
        Log structured data in tree format.

        Example output:
            [12:00:00 UTC] ⏰ Ban Sweep Complete
              ├─ Guild: 123456789
              ├─ Lifted: 2
              └─ Errors: 1

        Args:
            title: Tree title/header
            items: List of (key, value) tuples
            emoji: Emoji prefix for title
        """
        self._emit(title, items, emoji, "OK")


# =============================================================================
# Module Export
# =============================================================================

logger = MiniTreeLogger()

__all__ = ["logger", "MiniTreeLogger", "TreeSymbols"]
