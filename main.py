"""
Warden Moderation Bot - Main Entry Point
========================================

Application entry point with single-instance enforcement.

Usage:
    python main.py

Environment Variables:
    DISCORD_TOKEN: Required. Discord bot authentication token.
    WARNINGS_THRESH, WARNINGS_RANGE, RETENTION_DAYS: Moderation policy.
"""

import os
import sys
import fcntl
import signal
import tempfile
from pathlib import Path
from typing import NoReturn, Optional

# Load .env BEFORE importing local modules; config.py reads the
# environment at import time
from dotenv import load_dotenv
load_dotenv()

from src.core.logger import logger
from src.core.config import ConfigValidationError, ModerationConfig, validate_and_log_config
from src.bot import WardenBot


# =============================================================================
# Constants
# =============================================================================

LOCK_FILE_PATH = Path(tempfile.gettempdir()) / "warden_bot.lock"
"""Path to the lock file used for single-instance enforcement."""


# =============================================================================
# Single Instance Lock
# =============================================================================

def acquire_lock() -> int:
    """
    Take an exclusive lock so only one bot instance runs.

    The lock is released by the OS when the process exits, crash included.

    Returns:
        File descriptor of the lock file (kept open for lock lifetime).

    Raises:
        SystemExit: If another instance is already running.
    """
    try:
        fd = os.open(str(LOCK_FILE_PATH), os.O_RDWR | os.O_CREAT, 0o644)
    except OSError as e:
        logger.error("Failed to Open Lock File", [
            ("Path", str(LOCK_FILE_PATH)),
            ("Error", str(e)),
        ])
        sys.exit(1)

    try:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        existing_pid = _read_lock_pid(fd)
        logger.error("🔒 Another Instance Already Running", [
            ("Existing PID", existing_pid or "Unknown"),
        ])
        os.close(fd)
        sys.exit(1)

    os.truncate(fd, 0)
    os.write(fd, str(os.getpid()).encode())

    logger.info("🔒 Lock Acquired Successfully", [
        ("PID", str(os.getpid())),
    ])
    return fd


def _read_lock_pid(fd: int) -> Optional[str]:
    """PID written by the instance holding the lock, if readable."""
    try:
        os.lseek(fd, 0, os.SEEK_SET)
        return os.read(fd, 100).decode().strip() or None
    except (OSError, UnicodeDecodeError):
        return None


# =============================================================================
# Configuration
# =============================================================================

def load_configuration() -> tuple[str, ModerationConfig]:
    """
    Validate the environment and build the moderation policy.

    Returns:
        Discord bot token and the moderation policy.

    Raises:
        SystemExit: If required configuration is missing or invalid.
    """
    try:
        validate_and_log_config()
        config = ModerationConfig.from_env()
    except ConfigValidationError as e:
        logger.error("Configuration Validation Failed", [
            ("Error", str(e)),
            ("Action", "Check your .env file"),
        ])
        sys.exit(1)

    return os.environ["DISCORD_TOKEN"], config


# =============================================================================
# Signal Handlers
# =============================================================================

def _setup_signal_handlers() -> None:
    """
    Turn SIGTERM and SIGHUP into a graceful close.

    SIGINT is handled by discord.py's bot.run() as KeyboardInterrupt.
    """
    def handle_signal(signum: int, frame) -> None:
        logger.info("Signal Received", [
            ("Signal", signal.Signals(signum).name),
            ("Action", "Initiating graceful shutdown"),
        ])
        # SystemExit unwinds bot.run(), which closes the bot on the way out
        sys.exit(0)

    for name in ("SIGTERM", "SIGHUP"):
        if hasattr(signal, name):
            signal.signal(getattr(signal, name), handle_signal)


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> NoReturn:
    """
    Main entry point for Warden.

    Execution flow:
    1. Acquire single-instance lock
    2. Validate configuration
    3. Run the bot until shutdown
    """
    lock_fd = acquire_lock()
    token, config = load_configuration()
    _setup_signal_handlers()

    exit_code = 0
    try:
        logger.tree(
            "Starting Warden",
            [
                ("Purpose", "Reports, warnings and bans"),
                ("Lock File", str(LOCK_FILE_PATH)),
                ("PID", str(os.getpid())),
            ],
            emoji="🛡️",
        )

        bot = WardenBot(config)
        bot.run(token)

    except KeyboardInterrupt:
        logger.info("🛑 Shutdown Requested", [
            ("By", "User (Ctrl+C)"),
        ])

    except Exception as e:
        logger.error("💥 Fatal Error During Bot Execution", [
            ("Error", str(e)),
        ])
        logger.exception("Full traceback:")
        exit_code = 1

    finally:
        try:
            os.close(lock_fd)
        except OSError:
            pass
        logger.info("🛑 Bot Shutdown Complete")

    sys.exit(exit_code)


# =============================================================================
# Script Execution
# =============================================================================

if __name__ == "__main__":
    main()
