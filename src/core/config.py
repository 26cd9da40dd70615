"""
Warden Moderation Bot - Configuration Module
============================================

Environment configuration, startup validation and the moderation policy
values (warning threshold, escalation window, ban retention).

``main.py`` loads ``.env`` before this module is imported, so
the module-level constants below see the final environment.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from src.core.logger import logger


# =============================================================================
# Configuration Validation
# =============================================================================

class ConfigValidationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    valid: bool
    missing_required: list[str] = field(default_factory=list)
    missing_optional: list[str] = field(default_factory=list)
    invalid_format: list[tuple[str, str]] = field(default_factory=list)  # (var_name, reason)


# Required environment variables (bot won't start without these)
REQUIRED_ENV_VARS: list[str] = [
    "DISCORD_TOKEN",
]

# Optional environment variables with their descriptions
OPTIONAL_ENV_VARS: dict[str, str] = {
    "WARNINGS_THRESH": "Warnings inside the window before escalating to a ban",
    "WARNINGS_RANGE": "Escalation window in days",
    "RETENTION_DAYS": "Days a ban stays active before the sweep lifts it",
    "WARDEN_DB_PATH": "SQLite database path",
    "GATEWAY_TIMEOUT": "Seconds before a Discord call counts as failed",
    "SWEEP_INTERVAL_MINUTES": "Minutes between expired-ban sweeps",
    "COMMAND_GUILD_ID": "Guild to sync slash commands to instantly (global sync when unset)",
    "MOD_COMMAND_MIN_LEVEL": "Role level a member must exceed to use moderation commands",
}

# Integer variables and the smallest value each accepts when set.
# Day counts may be 0, matching ModerationConfig.
INTEGER_ENV_VARS: dict[str, int] = {
    "WARNINGS_THRESH": 1,
    "WARNINGS_RANGE": 0,
    "RETENTION_DAYS": 0,
    "SWEEP_INTERVAL_MINUTES": 1,
    "COMMAND_GUILD_ID": 1,
    "MOD_COMMAND_MIN_LEVEL": 0,
}

# Variables that must parse as numbers greater than zero when set
POSITIVE_FLOAT_ENV_VARS: list[str] = [
    "GATEWAY_TIMEOUT",
]


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None


def _parse_float(value: str) -> Optional[float]:
    try:
        return float(value)
    except ValueError:
        return None


def _load_int(env_var: str, default: int) -> int:
    """Load an integer constant at import time.

    Unparseable values fall back to ``default``; validate_and_log_config
    reports them at startup.
    """
    value = os.getenv(env_var)
    number = _parse_int(value) if value else None
    return default if number is None else number


def _load_float(env_var: str, default: float) -> float:
    """Float counterpart of _load_int."""
    value = os.getenv(env_var)
    number = _parse_float(value) if value else None
    return default if number is None else number


def validate_config(env: Optional[Mapping[str, str]] = None) -> ConfigValidationResult:
    """
    Validate all environment variables at startup.

    Returns:
        ConfigValidationResult with validation status and any issues found.
    """
    env = os.environ if env is None else env
    result = ConfigValidationResult(valid=True)

    for var in REQUIRED_ENV_VARS:
        if not env.get(var):
            result.missing_required.append(var)
            result.valid = False

    for var in OPTIONAL_ENV_VARS:
        if not env.get(var):
            result.missing_optional.append(var)

    for var, minimum in INTEGER_ENV_VARS.items():
        value = env.get(var)
        if not value:
            continue
        number = _parse_int(value)
        if number is None or number < minimum:
            reason = "Must be a positive integer" if minimum >= 1 else "Must be a non-negative integer"
            result.invalid_format.append((var, reason))
            result.valid = False

    for var in POSITIVE_FLOAT_ENV_VARS:
        value = env.get(var)
        if not value:
            continue
        number = _parse_float(value)
        if number is None or number <= 0:
            result.invalid_format.append((var, "Must be a number greater than zero"))
            result.valid = False

    return result


def validate_and_log_config() -> None:
    """
    Validate configuration and log results.

    Raises:
        ConfigValidationError: If required configuration is missing or invalid.
    """
    result = validate_config()

    for var in result.missing_required:
        logger.error("Missing Required Configuration", [
            ("Variable", var),
            ("Action", f"Add {var}=<value> to your .env file"),
        ])

    for var, reason in result.invalid_format:
        logger.error("Invalid Configuration Format", [
            ("Variable", var),
            ("Reason", reason),
        ])

    if result.missing_optional:
        logger.info("Using Default Configuration", [
            ("Variables", ", ".join(result.missing_optional)),
        ])

    if not result.valid:
        raise ConfigValidationError(
            f"Missing required config: {', '.join(result.missing_required)}"
            + (f"; Invalid format: {', '.join(v for v, _ in result.invalid_format)}" if result.invalid_format else "")
        )

    logger.info("Configuration Validated Successfully", [
        ("Required", f"{len(REQUIRED_ENV_VARS)} OK"),
        ("Optional", f"{len(OPTIONAL_ENV_VARS) - len(result.missing_optional)}/{len(OPTIONAL_ENV_VARS)} configured"),
    ])


# =============================================================================
# Moderation Policy
# =============================================================================

DEFAULT_WARNINGS_THRESH: int = 3
DEFAULT_WARNINGS_RANGE_DAYS: int = 7
DEFAULT_RETENTION_DAYS: int = 7


@dataclass(frozen=True)
class ModerationConfig:
    """
    Escalation and expiry policy handed to the moderation service and the
    ban sweeper at construction.

    Attributes:
        warnings_thresh: Recent warnings needed before the next one escalates
        warnings_range_days: Width of the rolling escalation window
        retention_days: Age at which an active ban is lifted by the sweep
        gateway_timeout: Seconds allowed for any single Discord call
    """
    warnings_thresh: int = DEFAULT_WARNINGS_THRESH
    warnings_range_days: int = DEFAULT_WARNINGS_RANGE_DAYS
    retention_days: int = DEFAULT_RETENTION_DAYS
    gateway_timeout: float = 10.0

    def __post_init__(self) -> None:
        if self.warnings_thresh < 1:
            raise ConfigValidationError("warnings_thresh must be at least 1")
        if self.warnings_range_days < 0:
            raise ConfigValidationError("warnings_range_days cannot be negative")
        if self.retention_days < 0:
            raise ConfigValidationError("retention_days cannot be negative")
        if self.gateway_timeout <= 0:
            raise ConfigValidationError("gateway_timeout must be positive")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ModerationConfig":
        """Build the policy from environment variables, falling back to defaults."""
        env = os.environ if env is None else env
        try:
            return cls(
                warnings_thresh=int(env.get("WARNINGS_THRESH") or DEFAULT_WARNINGS_THRESH),
                warnings_range_days=int(env.get("WARNINGS_RANGE") or DEFAULT_WARNINGS_RANGE_DAYS),
                retention_days=int(env.get("RETENTION_DAYS") or DEFAULT_RETENTION_DAYS),
                gateway_timeout=float(env.get("GATEWAY_TIMEOUT") or GATEWAY_TIMEOUT),
            )
        except ValueError as e:
            raise ConfigValidationError(f"Invalid moderation policy value: {e}") from e


# =============================================================================
# Role Levels
# =============================================================================

# Known role names and their rank. A "Suspended" role overrides everything.
ROLE_LEVELS: dict[str, int] = {
    "Member": 1,
    "Trusted": 2,
    "Moderator": 3,
    "Admin": 4,
    "Owner": 5,
}
SUSPENDED_ROLE_NAME: str = "Suspended"
SUSPENDED_LEVEL: int = -10

# Members need a level strictly above this to run moderation commands
MOD_COMMAND_MIN_LEVEL: int = _load_int("MOD_COMMAND_MIN_LEVEL", 2)


# =============================================================================
# Runtime Constants
# =============================================================================

DATABASE_PATH: str = os.getenv("WARDEN_DB_PATH", "data/warden.db")
DATABASE_TIMEOUT: float = 30.0  # SQLite connection timeout (seconds)
GATEWAY_TIMEOUT: float = _load_float("GATEWAY_TIMEOUT", 10.0)  # Per Discord call (seconds)
SWEEP_INTERVAL_MINUTES: int = _load_int("SWEEP_INTERVAL_MINUTES", 60)
COMMAND_GUILD_ID: int = _load_int("COMMAND_GUILD_ID", 0)

NO_REASON: str = "<none>"
EMBED_COLOR_MODERATION: int = 0xFF3300


__all__ = [
    "ConfigValidationError",
    "ConfigValidationResult",
    "validate_config",
    "validate_and_log_config",
    "ModerationConfig",
    "ROLE_LEVELS",
    "SUSPENDED_ROLE_NAME",
    "SUSPENDED_LEVEL",
    "MOD_COMMAND_MIN_LEVEL",
    "DATABASE_PATH",
    "DATABASE_TIMEOUT",
    "GATEWAY_TIMEOUT",
    "SWEEP_INTERVAL_MINUTES",
    "COMMAND_GUILD_ID",
    "NO_REASON",
    "EMBED_COLOR_MODERATION",
]
