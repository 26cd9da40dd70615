from datetime import timedelta

import pytest

from conftest import FakeNotifier, GUILD_ID, USER_ID
from src.services.moderation import ModerationOutcome, ModerationService, build_report
from src.services.moderation.errors import StoreError
from src.services.moderation.models import to_timestamp


async def _report(report_factory, description="rude"):
    return await report_factory.create(GUILD_ID, "spammer", description=description)


def _seed_warning(db, clock, days_ago):
    db.insert_warning(GUILD_ID, USER_ID, to_timestamp(clock() - timedelta(days=days_ago)))


@pytest.mark.asyncio
async def test_first_warning_is_recorded_and_user_notified(service, report_factory, db, notifier):
    result = await service.file_warning(await _report(report_factory))

    assert result.outcome is ModerationOutcome.WARNED
    assert result.message.startswith("User warned: `rude`")
    assert result.notification.ok
    assert db.count_warnings(GUILD_ID, USER_ID) == 1
    assert db.count_reports(GUILD_ID, USER_ID) == 1
    assert notifier.sent == [(USER_ID, "A warning has been issued. Reason: rude", ())]

    warning = db.get_recent_warnings(GUILD_ID, USER_ID, 1)[0]
    assert warning.report_id == result.report_id
    assert warning.id == result.record_id


@pytest.mark.asyncio
async def test_fourth_warning_inside_window_escalates(service, report_factory, db, access, clock):
    for _ in range(3):
        result = await service.file_warning(await _report(report_factory))
        assert result.outcome is ModerationOutcome.WARNED
        clock.advance(days=1)

    result = await service.file_warning(await _report(report_factory, "again"))

    assert result.outcome is ModerationOutcome.ESCALATED_TO_BAN
    assert result.message == "User has been warned too many times. Escalate to ban. Banned user."
    assert result.ban.outcome is ModerationOutcome.BANNED
    assert access.banned == [(GUILD_ID, USER_ID, "again")]
    # No fourth warning; the incident became a ban
    assert db.count_warnings(GUILD_ID, USER_ID) == 3
    assert db.count_reports(GUILD_ID, USER_ID) == 4

    ban = db.get_active_ban(GUILD_ID, USER_ID)
    assert ban.report_id == result.report_id


@pytest.mark.asyncio
async def test_one_old_warning_in_sample_prevents_escalation(service, report_factory, db, access, clock):
    _seed_warning(db, clock, days_ago=8)
    _seed_warning(db, clock, days_ago=2)
    _seed_warning(db, clock, days_ago=1)

    result = await service.file_warning(await _report(report_factory))

    assert result.outcome is ModerationOutcome.WARNED
    assert access.banned == []
    assert db.count_warnings(GUILD_ID, USER_ID) == 4


@pytest.mark.asyncio
async def test_warning_exactly_at_window_start_counts(service, report_factory, db, clock):
    _seed_warning(db, clock, days_ago=7)
    _seed_warning(db, clock, days_ago=3)
    _seed_warning(db, clock, days_ago=0)

    result = await service.file_warning(await _report(report_factory))

    assert result.outcome is ModerationOutcome.ESCALATED_TO_BAN


@pytest.mark.asyncio
async def test_only_newest_warnings_are_sampled(service, report_factory, db, clock):
    # Older history outside the sample does not matter
    _seed_warning(db, clock, days_ago=30)
    _seed_warning(db, clock, days_ago=3)
    _seed_warning(db, clock, days_ago=2)
    _seed_warning(db, clock, days_ago=1)

    result = await service.file_warning(await _report(report_factory))

    assert result.outcome is ModerationOutcome.ESCALATED_TO_BAN


@pytest.mark.asyncio
async def test_failed_dm_keeps_warning(db, access, config, clock, report_factory):
    service = ModerationService(db, FakeNotifier(fail=True), access, config, clock)

    result = await service.file_warning(await _report(report_factory))

    assert result.outcome is ModerationOutcome.WARNED
    assert not result.notification.ok
    assert "cannot DM user" in result.notification.error
    assert db.count_warnings(GUILD_ID, USER_ID) == 1


@pytest.mark.asyncio
async def test_dm_reason_placeholder_and_attachments(service, db, clock, notifier):
    report = build_report(GUILD_ID, USER_ID, to_timestamp(clock()), attachments=["proof.png"])

    await service.file_warning(report)

    assert notifier.sent == [(USER_ID, "A warning has been issued. Reason: <none>", ("proof.png",))]


def test_should_escalate_needs_full_sample(service, clock):
    assert not service.should_escalate([])


@pytest.mark.asyncio
async def test_report_write_failure_stops_warning(service, report_factory, db, notifier, monkeypatch):
    report = await _report(report_factory)

    def failing_insert(report):
        raise StoreError("insert_report", RuntimeError("disk I/O error"))

    monkeypatch.setattr(db, "insert_report", failing_insert)

    with pytest.raises(StoreError):
        await service.file_warning(report)

    assert db.count_warnings(GUILD_ID, USER_ID) == 0
    assert notifier.sent == []
