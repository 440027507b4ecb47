import pytest

from curator.config import AppConfig, Settings
from curator.errors import ConfigurationError
from curator.models import Severity


def test_defaults_are_valid(config_manager):
    config = config_manager.get()
    config.validate()
    assert config.score_threshold == 4
    assert set(config.category_quotas) <= set(config.categories)


@pytest.mark.parametrize("changes", [
    {"score_threshold": 0},
    {"score_threshold": 6},
    {"score_threshold": "4"},
    {"categories": []},
    {"categories": ["X", "X"], "category_quotas": {}},
    {"categories": ["X"], "category_quotas": {"X": -1}},
    {"categories": ["X"], "category_quotas": {"Y": 1}},
    {"schedule_frequency": "hourly"},
    {"schedule_day": "Someday"},
    {"schedule_hour": 24},
    {"categories": "AI", "category_quotas": {"A": 1}},
    {"categories": "XY", "category_quotas": {}},
    {"categories": ["X", 3], "category_quotas": {}},
    {"category_quotas": [1, 2]},
    {"report_title": 5},
    {"report_title": "   "},
    {"prompt_template": None},
    {"target_urls": "https://feed.example/rss"},
    {"keywords": ["AI", None]},
    {"schedule_minute": True},
])
def test_invalid_config_is_rejected_and_previous_kept(config_manager, audit, changes):
    config_manager.update(score_threshold=3)

    with pytest.raises(ConfigurationError):
        config_manager.update(**changes)

    assert config_manager.get().score_threshold == 3
    assert isinstance(config_manager.get().categories, list)
    assert audit.list()[0].severity == Severity.ERROR


def test_update_merges_into_current(config_manager):
    config_manager.update(categories=["X", "Y"], category_quotas={"X": 1})
    config = config_manager.update(score_threshold=2)
    assert config.categories == ["X", "Y"]
    assert config_manager.get().category_quotas == {"X": 1}
    assert config_manager.get().score_threshold == 2


def test_unknown_field_is_rejected(config_manager):
    with pytest.raises(ConfigurationError):
        config_manager.update(threshold=3)


def test_quota_for_unlisted_category_is_zero():
    config = AppConfig(categories=["X", "Y"], category_quotas={"X": 2})
    assert config.quota_for("X") == 2
    assert config.quota_for("Y") == 0


def test_from_dict_ignores_unknown_keys():
    config = AppConfig.from_dict({"score_threshold": 5, "legacy_field": True})
    assert config.score_threshold == 5


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("CURATOR_DB_PATH", "/tmp/digest.db")
    monkeypatch.setenv("ENABLE_DATABASE", "false")
    monkeypatch.delenv("GEMINI_MODEL", raising=False)
    settings = Settings.from_env()
    assert settings.db_path == "/tmp/digest.db"
    assert settings.db_enabled is False
    assert settings.gemini_model is None


def test_enrich_articles_flag_from_env(monkeypatch):
    monkeypatch.delenv("ENRICH_ARTICLES", raising=False)
    assert Settings.from_env().enrich_articles is False
    monkeypatch.setenv("ENRICH_ARTICLES", "true")
    assert Settings.from_env().enrich_articles is True
