import pytest

from src.core.config import ConfigValidationError, ModerationConfig, _load_float, _load_int, validate_config


def test_defaults():
    config = ModerationConfig()

    assert config.warnings_thresh == 3
    assert config.warnings_range_days == 7
    assert config.retention_days == 7


def test_from_env_reads_policy():
    config = ModerationConfig.from_env({
        "WARNINGS_THRESH": "5",
        "WARNINGS_RANGE": "14",
        "RETENTION_DAYS": "30",
        "GATEWAY_TIMEOUT": "2.5",
    })

    assert config == ModerationConfig(
        warnings_thresh=5,
        warnings_range_days=14,
        retention_days=30,
        gateway_timeout=2.5,
    )


def test_from_env_falls_back_to_defaults():
    assert ModerationConfig.from_env({}).warnings_thresh == 3


def test_threshold_must_be_positive():
    with pytest.raises(ConfigValidationError):
        ModerationConfig(warnings_thresh=0)


def test_from_env_rejects_garbage():
    with pytest.raises(ConfigValidationError):
        ModerationConfig.from_env({"RETENTION_DAYS": "a week"})


def test_validate_config_requires_token():
    result = validate_config({})

    assert not result.valid
    assert result.missing_required == ["DISCORD_TOKEN"]


def test_validate_config_flags_bad_numbers():
    result = validate_config({"DISCORD_TOKEN": "token", "WARNINGS_THRESH": "0"})

    assert not result.valid
    assert result.invalid_format == [("WARNINGS_THRESH", "Must be a positive integer")]


def test_validate_config_ok():
    result = validate_config({"DISCORD_TOKEN": "token", "RETENTION_DAYS": "10"})

    assert result.valid
    assert "RETENTION_DAYS" not in result.missing_optional


def test_zero_day_counts_accepted_everywhere():
    env = {"DISCORD_TOKEN": "token", "WARNINGS_RANGE": "0", "RETENTION_DAYS": "0"}

    assert validate_config(env).valid
    config = ModerationConfig.from_env(env)
    assert config.warnings_range_days == 0
    assert config.retention_days == 0


def test_negative_day_count_rejected_everywhere():
    env = {"DISCORD_TOKEN": "token", "RETENTION_DAYS": "-1"}

    assert validate_config(env).invalid_format == [("RETENTION_DAYS", "Must be a non-negative integer")]
    with pytest.raises(ConfigValidationError):
        ModerationConfig.from_env(env)


def test_validate_config_checks_runtime_constants():
    result = validate_config({
        "DISCORD_TOKEN": "token",
        "GATEWAY_TIMEOUT": "fast",
        "MOD_COMMAND_MIN_LEVEL": "mods",
        "SWEEP_INTERVAL_MINUTES": "0",
    })

    assert not result.valid
    assert sorted(result.invalid_format) == [
        ("GATEWAY_TIMEOUT", "Must be a number greater than zero"),
        ("MOD_COMMAND_MIN_LEVEL", "Must be a non-negative integer"),
        ("SWEEP_INTERVAL_MINUTES", "Must be a positive integer"),
    ]


def test_import_time_loaders_fall_back_on_bad_values(monkeypatch):
    monkeypatch.setenv("SWEEP_INTERVAL_MINUTES", "hourly")
    monkeypatch.setenv("GATEWAY_TIMEOUT", "soon")

    assert _load_int("SWEEP_INTERVAL_MINUTES", 60) == 60
    assert _load_float("GATEWAY_TIMEOUT", 10.0) == 10.0


def test_import_time_loaders_read_good_values(monkeypatch):
    monkeypatch.setenv("COMMAND_GUILD_ID", "123456789")
    monkeypatch.delenv("GATEWAY_TIMEOUT", raising=False)

    assert _load_int("COMMAND_GUILD_ID", 0) == 123456789
    assert _load_float("GATEWAY_TIMEOUT", 10.0) == 10.0
