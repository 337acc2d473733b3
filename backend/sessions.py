"""In-memory chat sessions, built from the stored config.

Sessions are not persisted; restarting the server drops them.
"""

import logging
import os
import uuid

from agent_chat.llm import ChatLLM, EchoChatLLM, HttpChatLLM
from agent_chat.pipeline import ChatSession
from agent_chat.prompts import build_system_prompt

from backend import storage, tools

logger = logging.getLogger(__name__)

_sessions: dict[str, ChatSession] = {}


class IntelligenceDisabled(ValueError):
    """Raised when chat is requested while the assistant is switched off."""


def build_llm(config: dict) -> ChatLLM:
    """Construct the chat client selected by the intelligence config."""
    intelligence = config["intelligence"]
    if intelligence["provider"] == "echo":
        return EchoChatLLM()
    model = intelligence["model"]
    if not model["base_url"]:
        raise ValueError("Model base URL is not set — configure it in Settings")
    return HttpChatLLM(
        base_url=model["base_url"],
        api_key=model["api_key"] or os.getenv("LLM_API_KEY", ""),
        model=model["model"],
    )


def create_session(language: str | None = None) -> tuple[str, ChatSession]:
    config = storage.get_config()
    if not config["intelligence"]["enabled"]:
        raise IntelligenceDisabled("Intelligence is not enabled — turn it on in Settings")

    chat = config["chat"]
    dispatcher = tools.build_dispatcher()
    session = ChatSession(
        llm=build_llm(config),
        dispatcher=dispatcher,
        system_prompt=build_system_prompt(dispatcher.describe(), language or chat["language"]),
        max_tool_rounds=chat["max_tool_rounds"],
        result_max_chars=chat["result_max_chars"],
    )
    session_id = uuid.uuid4().hex
    _sessions[session_id] = session
    logger.info("created session %s", session_id)
    return session_id, session


def get_session(session_id: str) -> ChatSession | None:
    return _sessions.get(session_id)


def delete_session(session_id: str) -> bool:
    return _sessions.pop(session_id, None) is not None


def reset_sessions() -> None:
    """Drop every session (used in tests)."""
    _sessions.clear()
