import pytest

from conftest import GUILD_ID, USER_ID
from src.services.moderation import ChannelRef
from src.services.moderation.errors import StoreError


GENERAL = ChannelRef(id=1, name="general")
MEMES = ChannelRef(id=2, name="memes")
VOICE = ChannelRef(id=3, name="voice-text")


@pytest.mark.asyncio
async def test_returns_only_successful_channels(revoker, access, db):
    access.fail_channels = {MEMES.id}

    result = await revoker.revoke_channel_access(GUILD_ID, "spammer", [GENERAL, MEMES, VOICE])

    assert result.revoked == [GENERAL, VOICE]
    assert [f.channel for f in result.failed] == [MEMES]
    assert "memes" in result.failed[0].error
    assert result.message == "Took channel permissions away in general, voice-text"

    report = db.get_report(result.report_id)
    assert report.user_id == USER_ID
    assert report.description == "Took channel permissions away in general, voice-text"


@pytest.mark.asyncio
async def test_unresolved_user_makes_no_attempt(revoker, access, db):
    result = await revoker.revoke_channel_access(GUILD_ID, "ghost", [GENERAL, MEMES])

    assert result.user_id is None
    assert result.revoked == []
    assert result.message == "Could not resolve user."
    assert access.denied == []
    assert db.count_reports(GUILD_ID, USER_ID) == 0


@pytest.mark.asyncio
async def test_all_channels_failing(revoker, access, db):
    access.fail_channels = {GENERAL.id, MEMES.id}

    result = await revoker.revoke_channel_access(GUILD_ID, "spammer", [GENERAL, MEMES])

    assert result.revoked == []
    assert result.message == "Could not take channel permissions away in any channel."
    assert db.get_report(result.report_id).description == "Took channel permissions away in no channels"


@pytest.mark.asyncio
async def test_report_failure_does_not_change_revoked(revoker, access, db, monkeypatch):
    def broken_insert(report):
        raise StoreError("insert_report", RuntimeError("disk full"))

    monkeypatch.setattr(db, "insert_report", broken_insert)

    result = await revoker.revoke_channel_access(GUILD_ID, "spammer", [GENERAL, MEMES])

    assert result.revoked == [GENERAL, MEMES]
    assert result.report_id is None
    assert "disk full" in result.report_error
