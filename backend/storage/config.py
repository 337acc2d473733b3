"""Global app configuration (model connection, chat behaviour)."""

import json
from pathlib import Path
from typing import Any

from .core import data_dir

_CONFIG_DEFAULTS: dict[str, Any] = {
    "intelligence": {
        "enabled": False,
        "provider": "openai",  # "openai" | "echo"
        "model": {"base_url": "", "api_key": "", "model": ""},
    },
    "chat": {
        "language": "en",
        "max_tool_rounds": 8,
        "result_max_chars": 8000,
    },
}


def _config_path() -> Path:
    return data_dir() / "config.json"


def _merge(target: dict[str, Any], fields: dict[str, Any]) -> None:
    """Merge *fields* into *target* key-by-key; unknown keys are dropped."""
    for key, value in fields.items():
        if key not in target:
            continue
        if isinstance(target[key], dict) and isinstance(value, dict):
            _merge(target[key], value)
        else:
            target[key] = value


def get_config() -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config: dict[str, Any] = json.loads(json.dumps(_CONFIG_DEFAULTS))
    path = _config_path()
    if path.is_file():
        _merge(config, json.loads(path.read_text()))
    return config


def update_config(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into config and persist. Returns full config."""
    config = get_config()
    _merge(config, fields)
    _config_path().write_text(json.dumps(config, indent=2))
    return config
