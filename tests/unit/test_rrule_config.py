"""Unit tests for calendarbot_rrule.rrule_config."""

import logging

import pytest

from calendarbot_rrule.rrule_config import (
    CONFIG_ENV_VAR,
    RRuleConfig,
    get_config,
    load_config,
    set_config,
)

pytestmark = pytest.mark.unit


class TestFromDict:
    def test_defaults(self):
        cfg = RRuleConfig.from_dict(None)

        assert cfg == RRuleConfig()
        assert cfg.cache_enabled is True
        assert cfg.cache_max_entries is None
        assert cfg.log_level == "INFO"
        assert cfg.strict_unknown_properties is False

    def test_coerces_strings(self):
        cfg = RRuleConfig.from_dict(
            {"cache_enabled": "no", "cache_max_entries": "32", "log_level": "debug", "strict_unknown_properties": "yes"}
        )

        assert cfg.cache_enabled is False
        assert cfg.cache_max_entries == 32
        assert cfg.log_level == "DEBUG"
        assert cfg.strict_unknown_properties is True

    def test_unusable_values_fall_back_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="calendarbot_rrule.rrule_config"):
            cfg = RRuleConfig.from_dict({"cache_enabled": "maybe", "cache_max_entries": "lots", "log_level": "LOUD"})

        assert cfg.cache_enabled is True
        assert cfg.cache_max_entries is None
        assert cfg.log_level == "INFO"
        assert len(caplog.records) == 3

    def test_cache_max_entries_minimum(self):
        assert RRuleConfig.from_dict({"cache_max_entries": 0}).cache_max_entries == 1


class TestLoadConfig:
    def test_no_path_returns_defaults(self):
        assert load_config() == RRuleConfig()

    def test_missing_file_returns_defaults(self, tmp_path):
        assert load_config(tmp_path / "absent.yaml") == RRuleConfig()

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "rrule.yaml"
        path.write_text("cache_enabled: false\ncache_max_entries: 8\nlog_level: WARNING\n")

        cfg = load_config(path)

        assert cfg == RRuleConfig(cache_enabled=False, cache_max_entries=8, log_level="WARNING")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "rrule.yaml"
        path.write_text("")

        assert load_config(path) == RRuleConfig()

    def test_environment_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "rrule.yaml"
        path.write_text("strict_unknown_properties: true\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert load_config().strict_unknown_properties is True

    def test_non_mapping_raises(self, tmp_path):
        path = tmp_path / "rrule.yaml"
        path.write_text("- one\n- two\n")

        with pytest.raises(ValueError):
            load_config(path)


def test_get_config_loads_once_and_set_config_replaces(tmp_path, monkeypatch):
    path = tmp_path / "rrule.yaml"
    path.write_text("cache_enabled: false\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    first = get_config()
    assert first.cache_enabled is False
    assert get_config() is first

    replacement = RRuleConfig(log_level="ERROR")
    set_config(replacement)
    assert get_config() is replacement

    set_config(None)
    assert get_config() == first
