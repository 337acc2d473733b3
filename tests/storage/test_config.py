"""Tests for config storage: defaults, partial merges, unknown keys."""

import json

from backend import storage


def test_get_config_empty():
    """Returns defaults when no config file exists."""
    config = storage.get_config()
    assert config["intelligence"] == {
        "enabled": False,
        "provider": "openai",
        "model": {"base_url": "", "api_key": "", "model": ""},
    }
    assert config["chat"] == {"language": "en", "max_tool_rounds": 8, "result_max_chars": 8000}


def test_update_config_persists():
    result = storage.update_config({"intelligence": {"enabled": True}})
    assert result["intelligence"]["enabled"] is True

    reloaded = storage.get_config()
    assert reloaded["intelligence"]["enabled"] is True
    assert reloaded["intelligence"]["provider"] == "openai"


def test_update_config_nested_partial():
    """Updating one model field keeps the others."""
    storage.update_config({"intelligence": {"model": {"base_url": "http://localhost:8080"}}})
    storage.update_config({"intelligence": {"model": {"model": "qwen"}}})

    model = storage.get_config()["intelligence"]["model"]
    assert model == {"base_url": "http://localhost:8080", "api_key": "", "model": "qwen"}


def test_update_config_sections_independent():
    storage.update_config({"chat": {"language": "zh-Hans"}})
    storage.update_config({"intelligence": {"provider": "echo"}})

    config = storage.get_config()
    assert config["chat"]["language"] == "zh-Hans"
    assert config["chat"]["max_tool_rounds"] == 8
    assert config["intelligence"]["provider"] == "echo"


def test_unknown_keys_ignored():
    result = storage.update_config({"theme": "dark", "chat": {"font": "serif"}})
    assert "theme" not in result
    assert "font" not in result["chat"]


def test_stored_file_merged_over_defaults():
    """A hand-edited config with missing keys still gets defaults."""
    path = storage.data_dir() / "config.json"
    path.write_text(json.dumps({"chat": {"max_tool_rounds": 2}}))

    config = storage.get_config()
    assert config["chat"]["max_tool_rounds"] == 2
    assert config["chat"]["result_max_chars"] == 8000
    assert config["intelligence"]["enabled"] is False


def test_defaults_not_mutated():
    config = storage.get_config()
    config["chat"]["language"] = "xx"
    assert storage.get_config()["chat"]["language"] == "en"
