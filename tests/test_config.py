"""Tests for the config module."""
import json

import pytest

from fit_rank.config import (
    DEFAULT_LOG_LEVEL,
    config_path,
    get_db_path,
    get_default_team,
    get_log_level,
    get_timezone,
    load_config,
    save_config,
    set_value,
)


class TestLoadConfig:
    def test_missing_file_returns_empty(self, tmp_path):
        assert load_config(tmp_path / "nonexistent.json") == {}

    def test_invalid_json_returns_empty(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not json", encoding="utf-8")
        assert load_config(path) == {}

    def test_non_object_returns_empty(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert load_config(path) == {}

    def test_loads_valid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"key": "value"}', encoding="utf-8")
        assert load_config(path) == {"key": "value"}


class TestSaveConfig:
    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "sub" / "dir" / "config.json"
        save_config({"nested": True}, path)
        assert json.loads(path.read_text()) == {"nested": True}

    def test_set_value_preserves_other_keys(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"log_level": "info"}, path)
        set_value("default_team", "t1", path)
        assert load_config(path) == {"log_level": "info", "default_team": "t1"}

    def test_set_value_rejects_unknown_key(self, tmp_path):
        path = tmp_path / "config.json"
        with pytest.raises(ValueError, match="Unknown config key"):
            set_value("colour", "blue", path)
        assert not path.exists()


class TestConfigPath:
    def test_env_override(self, tmp_path, monkeypatch):
        target = tmp_path / "custom.json"
        monkeypatch.setenv("FIT_RANK_CONFIG", str(target))
        assert config_path() == target

    def test_default_without_env(self, monkeypatch):
        monkeypatch.delenv("FIT_RANK_CONFIG", raising=False)
        assert config_path().name == "config.json"


class TestGetters:
    def test_db_path(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"db_path": str(tmp_path / "fit.db")}, path)
        assert get_db_path(path) == tmp_path / "fit.db"

    def test_db_path_unset(self, tmp_path):
        assert get_db_path(tmp_path / "none.json") is None

    def test_log_level_default(self, tmp_path):
        assert get_log_level(tmp_path / "none.json") == DEFAULT_LOG_LEVEL

    def test_log_level_uppercased(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"log_level": "debug"}, path)
        assert get_log_level(path) == "DEBUG"

    def test_timezone_unset(self, tmp_path):
        assert get_timezone(tmp_path / "none.json") is None

    def test_unknown_timezone(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"timezone": "Mars/Olympus_Mons"}, path)
        assert get_timezone(path) is None

    def test_default_team(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"default_team": "hawks"}, path)
        assert get_default_team(path) == "hawks"
