import json

import pytest

from elote import config
from elote.config import ConfigError, SettingsStore, parse_timeout
from elote.models import Settings


def test_defaults_written_when_missing(tmp_path):
    cfg_path = tmp_path / "config.json"
    store = SettingsStore(path=cfg_path)

    settings = store.settings
    assert isinstance(settings, Settings)
    assert settings.provider == "openai"
    assert len(settings.prompts) == 3
    assert cfg_path.exists()


def test_store_uses_module_config_path(tmp_path, monkeypatch):
    cfg_path = tmp_path / "elote.json"
    monkeypatch.setattr(config, "CONFIG_PATH", cfg_path)

    SettingsStore().update(api_key="sk-test")
    assert json.loads(cfg_path.read_text())["api_key"] == "sk-test"


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text("{not json")

    settings = SettingsStore(path=cfg_path).settings
    assert settings.api_key == ""
    assert settings.provider == "openai"


def test_wrong_types_fall_back_to_defaults(tmp_path):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(json.dumps({"prompts": [{"text": "missing name"}]}))

    settings = SettingsStore(path=cfg_path).settings
    assert [p.name for p in settings.prompts] == ["Default", "Fix Grammar", "Make Professional"]


@pytest.mark.parametrize("prompts", [[{"text": "missing name"}], ["not an object"], {"name": "x"}])
def test_malformed_prompts_fall_back_to_defaults(tmp_path, prompts):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(json.dumps({"api_key": "sk-test", "prompts": prompts}))

    settings = SettingsStore(path=cfg_path).settings
    assert settings.api_key == ""
    assert len(settings.prompts) == 3


def test_wrong_scalar_types_use_field_defaults(tmp_path):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(
        json.dumps(
            {
                "api_key": None,
                "provider": "anthropic",
                "custom_model": 4,
                "auto_mode_enabled": "false",
                "strict_output": 0,
                "request_timeout": "fast",
                "selected_prompt_id": None,
            }
        )
    )

    settings = SettingsStore(path=cfg_path).settings
    assert settings.api_key == ""
    assert settings.provider == "anthropic"
    assert settings.custom_model == ""
    assert settings.auto_mode_enabled is False
    assert settings.strict_output is True
    assert settings.request_timeout == 60.0


@pytest.mark.parametrize("timeout", [0, -5, True])
def test_unusable_timeout_is_replaced(tmp_path, timeout):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(json.dumps({"request_timeout": timeout}))

    assert SettingsStore(path=cfg_path).settings.request_timeout == 60.0


def test_unknown_keys_are_ignored(tmp_path):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(json.dumps({"provider": "anthropic", "theme": "dark"}))

    settings = SettingsStore(path=cfg_path).settings
    assert settings.provider == "anthropic"


def test_update_persists_immediately(tmp_path):
    cfg_path = tmp_path / "config.json"
    SettingsStore(path=cfg_path).update(provider="anthropic", custom_model="claude-3")

    reloaded = SettingsStore(path=cfg_path).settings
    assert reloaded.provider == "anthropic"
    assert reloaded.custom_model == "claude-3"
    assert len(reloaded.prompts) == 3


def test_update_validates_keys(tmp_path):
    store = SettingsStore(path=tmp_path / "config.json")
    with pytest.raises(ConfigError):
        store.update(unknown="value")


def test_save_failure_is_logged_not_raised(tmp_path, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    store = SettingsStore(path=blocker / "config.json")

    settings = store.update(api_key="kept-in-memory")
    assert settings.api_key == "kept-in-memory"
    assert "Failed to save settings" in caplog.text


@pytest.mark.parametrize("raw, expected", [("30", 30.0), (" 2.5 ", 2.5), (90, 90.0)])
def test_parse_timeout_accepts_positive_numbers(raw, expected):
    assert parse_timeout(raw) == expected


@pytest.mark.parametrize("raw", ["", "soon", "0", "-1", None])
def test_parse_timeout_rejects_unusable_values(raw):
    with pytest.raises(ConfigError):
        parse_timeout(raw)
