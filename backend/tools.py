"""Built-in tools the assistant can call with ::function:: directives."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from agent_chat.tools import LocalDispatcher

from backend import storage


class NoParams(BaseModel):
    pass


def retrieve_settings(params: NoParams) -> dict[str, Any]:
    """Get the app settings: model connection (API key hidden) and chat options."""
    config = storage.get_config()
    model = config["intelligence"]["model"]
    if model.get("api_key"):
        model["api_key"] = "***"
    return config


def current_time(params: NoParams) -> dict[str, str]:
    """Get the current date and time in UTC."""
    return {"utc": datetime.now(timezone.utc).isoformat(timespec="seconds")}


def build_dispatcher() -> LocalDispatcher:
    dispatcher = LocalDispatcher()
    dispatcher.register(params=NoParams)(retrieve_settings)
    dispatcher.register(params=NoParams)(current_time)
    return dispatcher
