import pytest

from conftest import FakeDirectory, GUILD_ID, USER_ID
from src.services.moderation import (
    ModerationOutcome,
    Report,
    ReportFactory,
    ValidationError,
    ValidationErrorKind,
    build_report,
    format_report,
)


CREATED_AT = "2024-03-01T12:00:00.000000+00:00"


def test_build_report_requires_description_or_attachment():
    result = build_report(GUILD_ID, USER_ID, CREATED_AT, description="   ", attachments=[])

    assert isinstance(result, ValidationError)
    assert result.kind is ValidationErrorKind.EMPTY_REPORT
    assert result.message == "Need either a description or attachment(s)."


def test_build_report_accepts_attachment_only():
    result = build_report(GUILD_ID, USER_ID, CREATED_AT, attachments=["https://cdn.example/a.png"])

    assert isinstance(result, Report)
    assert result.description is None
    assert result.attachments == ("https://cdn.example/a.png",)


def test_build_report_strips_description():
    result = build_report(GUILD_ID, USER_ID, CREATED_AT, description="  spam in #general ")

    assert result.description == "spam in #general"
    assert result.attachments == ()


def test_format_report_placeholders():
    report = Report(guild_id=GUILD_ID, user_id=USER_ID, created_at=CREATED_AT)

    assert format_report(report) == "`no description`: [no attachment] at 2024-03-01 12:00 UTC"


def test_format_report_lists_attachments():
    report = Report(
        guild_id=GUILD_ID,
        user_id=USER_ID,
        created_at=CREATED_AT,
        description="slurs",
        attachments=("a.png", "b.png"),
    )

    assert format_report(report) == "`slurs`: [a.png, b.png] at 2024-03-01 12:00 UTC"


@pytest.mark.asyncio
async def test_factory_stamps_report_with_clock(report_factory, clock):
    report = await report_factory.create(GUILD_ID, "spammer", description="flooding")

    assert isinstance(report, Report)
    assert report.user_id == USER_ID
    assert report.created_at == "2024-03-01T12:00:00.000000+00:00"
    assert report.id is None


@pytest.mark.asyncio
async def test_factory_rejects_unknown_handle(report_factory):
    result = await report_factory.create(GUILD_ID, "ghost", description="flooding")

    assert isinstance(result, ValidationError)
    assert result.kind is ValidationErrorKind.USER_NOT_RESOLVED
    assert result.message == "Could not resolve ghost to a user."


@pytest.mark.asyncio
async def test_factory_treats_directory_failure_as_unresolved(config, clock):
    factory = ReportFactory(FakeDirectory(fail=True), config.gateway_timeout, clock)

    result = await factory.create(GUILD_ID, "spammer", description="flooding")

    assert result.kind is ValidationErrorKind.USER_NOT_RESOLVED


@pytest.mark.asyncio
async def test_file_report_persists_without_side_effects(service, report_factory, db, notifier, access):
    report = await report_factory.create(GUILD_ID, "spammer", description="flooding", attachments=["x.png"])

    result = await service.file_report(report)

    assert result.outcome is ModerationOutcome.REPORTED
    assert result.message == "Added report: `flooding`: [x.png] at 2024-03-01 12:00 UTC"
    stored = db.get_report(result.report_id)
    assert stored.description == "flooding"
    assert stored.attachments == ("x.png",)
    assert stored.id == result.report_id
    assert db.count_warnings(GUILD_ID, USER_ID) == 0
    assert notifier.sent == []
    assert access.banned == []


def test_report_ids_are_unique(db):
    report = build_report(GUILD_ID, USER_ID, CREATED_AT, description="one")

    first = db.insert_report(report)
    second = db.insert_report(report)

    assert first != second
    assert db.count_reports(GUILD_ID, USER_ID) == 2
