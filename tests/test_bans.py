import asyncio

import pytest

from conftest import GUILD_ID, USER_ID
from src.services.moderation import ModerationOutcome, build_report
from src.services.moderation.errors import StoreError
from src.services.moderation.models import to_timestamp


@pytest.fixture()
def report(clock):
    return build_report(GUILD_ID, USER_ID, to_timestamp(clock()), description="raid")


def _ban_count(db):
    with db._cursor("count_bans") as cursor:
        cursor.execute("SELECT COUNT(*) FROM bans WHERE guild_id = ? AND user_id = ?", (GUILD_ID, USER_ID))
        return cursor.fetchone()[0]


@pytest.mark.asyncio
async def test_ban_then_already_banned(service, report, db, access):
    first = await service.file_ban(report)
    second = await service.file_ban(report)

    assert first.outcome is ModerationOutcome.BANNED
    assert first.message == "Banned user."
    assert second.outcome is ModerationOutcome.ALREADY_BANNED
    assert second.message == "User is already banned."
    assert _ban_count(db) == 1
    assert len(access.banned) == 1


@pytest.mark.asyncio
async def test_already_banned_has_no_side_effects(service, report, db):
    await service.file_ban(report)
    reports_before = db.count_reports(GUILD_ID, USER_ID)

    result = await service.file_ban(report)

    assert result.report_id is None
    assert db.count_reports(GUILD_ID, USER_ID) == reports_before


@pytest.mark.asyncio
async def test_ban_record_fields(service, report, db):
    result = await service.file_ban(report)

    ban = db.get_active_ban(GUILD_ID, USER_ID)
    assert ban.id == result.record_id
    assert ban.active
    assert ban.reason == "raid"
    assert ban.report_id == result.report_id
    assert ban.date == "2024-03-01T12:00:00.000000+00:00"


@pytest.mark.asyncio
async def test_ban_reason_placeholder(service, db, clock):
    report = build_report(GUILD_ID, USER_ID, to_timestamp(clock()), attachments=["proof.png"])

    await service.file_ban(report)

    assert db.get_active_ban(GUILD_ID, USER_ID).reason == "<none>"


@pytest.mark.asyncio
async def test_failed_platform_ban_keeps_record(service, report, db, access):
    access.fail_ban = True

    result = await service.file_ban(report)

    assert result.outcome is ModerationOutcome.BAN_ACTION_FAILED
    assert result.message == "Issue occurred trying to ban user."
    ban = db.get_active_ban(GUILD_ID, USER_ID)
    assert ban is not None
    assert ban.id == result.record_id


@pytest.mark.asyncio
async def test_platform_ban_timeout_is_a_failure(service, report, db, access, config):
    access.ban_delay = config.gateway_timeout * 4

    result = await service.file_ban(report)

    assert result.outcome is ModerationOutcome.BAN_ACTION_FAILED
    assert db.get_active_ban(GUILD_ID, USER_ID) is not None


@pytest.mark.asyncio
async def test_concurrent_bans_write_one_record(service, report, db):
    results = await asyncio.gather(service.file_ban(report), service.file_ban(report))

    outcomes = sorted(r.outcome.value for r in results)
    assert outcomes == ["already_banned", "banned"]
    assert _ban_count(db) == 1


def test_store_rejects_second_active_ban(db):
    assert db.insert_ban(GUILD_ID, USER_ID, "2024-03-01T12:00:00.000000+00:00", "first") is not None
    assert db.insert_ban(GUILD_ID, USER_ID, "2024-03-01T12:00:01.000000+00:00", "second") is None


def test_inactive_ban_allows_new_ban(db):
    ban_id = db.insert_ban(GUILD_ID, USER_ID, "2024-03-01T12:00:00.000000+00:00", "first")
    db.deactivate_bans([ban_id])

    assert db.insert_ban(GUILD_ID, USER_ID, "2024-03-09T12:00:00.000000+00:00", "second") is not None
    assert db.get_latest_ban(GUILD_ID, USER_ID).reason == "second"


@pytest.mark.asyncio
async def test_report_write_failure_stops_ban(service, report, db, access, monkeypatch):
    def failing_insert(report):
        raise StoreError("insert_report", RuntimeError("disk I/O error"))

    monkeypatch.setattr(db, "insert_report", failing_insert)

    with pytest.raises(StoreError):
        await service.file_ban(report)

    assert db.get_active_ban(GUILD_ID, USER_ID) is None
    assert _ban_count(db) == 0
    assert access.banned == []
