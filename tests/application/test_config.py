import pytest
from pydantic import ValidationError

from mnemos.application.config import (
    DifficultySettings,
    EngineConfig,
    SchedulingSettings,
    WeakSpotSettings,
    config_files,
    resolve_config,
)


def test_defaults(mock_home):
    config = resolve_config()
    assert config.scheduling.default_ease == 2.5
    assert config.scheduling.max_interval_days == 365
    assert config.weak_spots.error_dominance_threshold == 0.3
    assert config.difficulty.default_level == 5
    assert config.log_level == "INFO"


def test_env_overrides(mock_home, monkeypatch):
    monkeypatch.setenv("MNEMOS_SCHEDULING__MAX_INTERVAL_DAYS", "120")
    monkeypatch.setenv("MNEMOS_LOG_LEVEL", "DEBUG")
    config = resolve_config()
    assert config.scheduling.max_interval_days == 120
    assert config.log_level == "DEBUG"


def test_toml_file(mock_home):
    path = mock_home / ".config" / "mnemos" / "config.toml"
    path.parent.mkdir(parents=True)
    path.write_text("[difficulty]\ndefault_level = 4\n")

    assert config_files()[0] == path
    assert resolve_config().difficulty.default_level == 4


def test_overrides_win(mock_home, monkeypatch):
    monkeypatch.setenv("MNEMOS_LOG_LEVEL", "ERROR")
    config = resolve_config({"log_level": "WARNING"})
    assert config.log_level == "WARNING"


def test_invalid_ranges_rejected(mock_home):
    with pytest.raises(ValidationError):
        SchedulingSettings(time_multiplier_min=1.2, time_multiplier_max=1.0)
    with pytest.raises(ValidationError):
        WeakSpotSettings(warning_threshold=80, critical_threshold=70)
    with pytest.raises(ValidationError):
        WeakSpotSettings(confusion_min=6, confusion_critical_min=5)
    with pytest.raises(ValidationError):
        DifficultySettings(default_level=11)
    with pytest.raises(ValidationError):
        EngineConfig(log_level="LOUD")
