"""Conversation pipeline: streaming, directive execution, auto-continuation."""

from .orchestrator import (  # noqa: F401
    DEFAULT_MAX_TOOL_ROUNDS,
    STREAM_ERROR_TEXT,
    ChatSession,
    SessionState,
)
