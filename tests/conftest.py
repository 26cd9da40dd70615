from datetime import datetime, timedelta, timezone
from pathlib import Path
import asyncio
import os
import sys
import tempfile

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# The logger picks its directory at import time
os.environ.setdefault("WARDEN_LOGS_DIR", tempfile.mkdtemp(prefix="warden-logs-"))

from src.core.config import ModerationConfig
from src.services.moderation import (
    BanSweeper,
    CaseDatabase,
    ChannelAccessRevoker,
    ModerationService,
    ReportFactory,
    SummaryBuilder,
)


GUILD_ID = 1000
USER_ID = 42
OTHER_USER_ID = 43


class FrozenClock:
    """Test clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeDirectory:
    def __init__(self, users=None, fail: bool = False) -> None:
        self.users = dict(users or {})
        self.fail = fail

    async def resolve(self, guild_id, handle):
        if self.fail:
            raise RuntimeError("directory offline")
        return self.users.get(handle)


class FakeNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent = []

    async def send_direct_message(self, user_id, text, attachments=()):
        if self.fail:
            raise RuntimeError("cannot DM user")
        self.sent.append((user_id, text, tuple(attachments)))


class FakeAccess:
    def __init__(self) -> None:
        self.fail_ban = False
        self.ban_delay = 0.0
        self.fail_unban_users = set()
        self.unban_delay = 0.0
        self.fail_channels = set()
        self.banned = []
        self.unbanned = []
        self.denied = []

    async def deny_channel_access(self, guild_id, user_id, channel):
        if channel.id in self.fail_channels:
            raise RuntimeError(f"missing permissions in {channel.name}")
        self.denied.append((user_id, channel))

    async def platform_ban(self, guild_id, user_id, reason):
        if self.ban_delay:
            await asyncio.sleep(self.ban_delay)
        if self.fail_ban:
            raise RuntimeError("ban rejected")
        self.banned.append((guild_id, user_id, reason))

    async def platform_unban(self, guild_id, user_id):
        if self.unban_delay:
            await asyncio.sleep(self.unban_delay)
        if user_id in self.fail_unban_users:
            raise RuntimeError("unban rejected")
        self.unbanned.append((guild_id, user_id))


@pytest.fixture()
def db(tmp_path):
    database = CaseDatabase(str(tmp_path / "warden.db"))
    yield database
    database.close()


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def config() -> ModerationConfig:
    return ModerationConfig(warnings_thresh=3, warnings_range_days=7, retention_days=7, gateway_timeout=0.5)


@pytest.fixture()
def directory() -> FakeDirectory:
    return FakeDirectory({"spammer": USER_ID, "bystander": OTHER_USER_ID})


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def access() -> FakeAccess:
    return FakeAccess()


@pytest.fixture()
def report_factory(directory, config, clock) -> ReportFactory:
    return ReportFactory(directory, config.gateway_timeout, clock)


@pytest.fixture()
def service(db, notifier, access, config, clock) -> ModerationService:
    return ModerationService(db, notifier, access, config, clock)


@pytest.fixture()
def sweeper(db, access, config, clock) -> BanSweeper:
    return BanSweeper(db, access, config, clock)


@pytest.fixture()
def revoker(db, directory, access, config, clock) -> ChannelAccessRevoker:
    return ChannelAccessRevoker(db, directory, access, config, clock)


@pytest.fixture()
def summary_builder(db, directory, config) -> SummaryBuilder:
    return SummaryBuilder(db, directory, config)
