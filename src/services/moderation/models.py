"""
Warden - Moderation Models
==========================

Dataclass definitions for moderation records and operation results.

Timestamps are stored as ISO-8601 UTC strings with fixed microsecond
precision, so comparing two stored strings compares the instants they
represent.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Callable


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_timestamp(dt: datetime) -> str:
    """Render a datetime in the canonical stored form."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    """Inverse of to_timestamp."""
    return datetime.fromisoformat(value)


# =============================================================================
# Record Models
# =============================================================================

@dataclass(frozen=True)
class Report:
    """An observed incident about one user in one guild."""
    guild_id: int
    user_id: int
    created_at: str
    description: Optional[str] = None
    attachments: tuple[str, ...] = ()
    id: Optional[int] = None


@dataclass(frozen=True)
class WarningRecord:
    """A formal caution issued to a user."""
    id: int
    guild_id: int
    user_id: int
    date: str
    report_id: Optional[int] = None


@dataclass(frozen=True)
class BanRecord:
    """A platform ban with an active/inactive lifecycle."""
    id: int
    guild_id: int
    user_id: int
    date: str
    active: bool
    reason: str
    report_id: Optional[int] = None


@dataclass(frozen=True)
class ChannelRef:
    """A channel the revoker can act on, identified by id with a display name."""
    id: int
    name: str


# =============================================================================
# Outcomes
# =============================================================================

class ModerationOutcome(Enum):
    """Discriminator for report, warning and ban results."""
    REPORTED = "reported"
    WARNED = "warned"
    ESCALATED_TO_BAN = "escalated_to_ban"
    BANNED = "banned"
    ALREADY_BANNED = "already_banned"
    BAN_ACTION_FAILED = "ban_action_failed"


class SweepStatus(Enum):
    """Discriminator for sweep results."""
    SWEPT = "swept"
    NOTHING_TO_DO = "nothing_to_do"
    STORE_UNAVAILABLE = "store_unavailable"


@dataclass(frozen=True)
class GatewayResult:
    """Outcome of one best-effort external call."""
    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "GatewayResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: BaseException) -> "GatewayResult":
        return cls(ok=False, error=str(error) or type(error).__name__)


@dataclass
class ModerationResult:
    """
    Result of file_report, file_warning and file_ban.

    Attributes:
        outcome: Which branch the operation took
        message: Short moderator-facing text
        report_id: Id of the persisted report, if one was written
        record_id: Id of the warning or ban written, if any
        notification: Result of the DM to the user, when one was attempted
        ban: Nested ban result when a warning escalated
    """
    outcome: ModerationOutcome
    message: str
    report_id: Optional[int] = None
    record_id: Optional[int] = None
    notification: Optional[GatewayResult] = None
    ban: Optional["ModerationResult"] = None


@dataclass(frozen=True)
class UnbanFailure:
    """A ban whose platform unban call failed during a sweep."""
    ban_id: int
    user_id: int
    error: str


@dataclass
class SweepResult:
    """Result of one expired-ban sweep over a guild."""
    guild_id: int
    status: SweepStatus
    lifted_count: int = 0
    processed_count: int = 0
    errors: list[UnbanFailure] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.status is SweepStatus.STORE_UNAVAILABLE:
            return "Ban records are unavailable. Nothing to do."
        if self.status is SweepStatus.NOTHING_TO_DO:
            return "No unbans to perform."
        return f"Lifted {self.lifted_count} ban(s), {len(self.errors)} failed."


@dataclass(frozen=True)
class ChannelFailure:
    """A channel where denying access failed."""
    channel: ChannelRef
    error: str


@dataclass
class ChannelRevocationResult:
    """
    Result of revoking a user's access to a set of channels.

    ``revoked`` lists exactly the channels whose permission call succeeded;
    the summary report outcome never changes it.
    """
    user_id: Optional[int]
    revoked: list[ChannelRef] = field(default_factory=list)
    failed: list[ChannelFailure] = field(default_factory=list)
    report_id: Optional[int] = None
    report_error: Optional[str] = None

    @property
    def message(self) -> str:
        if self.user_id is None:
            return "Could not resolve user."
        if not self.revoked:
            return "Could not take channel permissions away in any channel."
        names = ", ".join(c.name for c in self.revoked)
        return f"Took channel permissions away in {names}"


@dataclass
class ModerationSummary:
    """
    Read-only overview of a user's moderation history.

    Counts are ``None`` when their lookup failed.
    """
    user_handle: str
    user_id: int
    total_reports: Optional[int]
    total_warnings: Optional[int]
    last_ban: Optional[BanRecord]
    last_warning: str

    @property
    def is_banned(self) -> bool:
        return self.last_ban is not None and self.last_ban.active

    @property
    def ban_status(self) -> str:
        if self.is_banned:
            since = parse_timestamp(self.last_ban.date).strftime("%Y-%m-%d %H:%M UTC")
            return f"Banned since {since}"
        return "Not banned"


__all__ = [
    "Clock",
    "utc_now",
    "to_timestamp",
    "parse_timestamp",
    "Report",
    "WarningRecord",
    "BanRecord",
    "ChannelRef",
    "ModerationOutcome",
    "SweepStatus",
    "GatewayResult",
    "ModerationResult",
    "UnbanFailure",
    "SweepResult",
    "ChannelFailure",
    "ChannelRevocationResult",
    "ModerationSummary",
]
