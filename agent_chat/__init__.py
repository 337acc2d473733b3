"""Chat agent that executes ::function:: directives found in model output."""

from agent_chat.directives import (  # noqa: F401
    FUNCTION_CALL_MARKER,
    last_directive,
    scan,
    segments_to_text,
    split,
)
from agent_chat.llm import ChatLLM, EchoChatLLM, HttpChatLLM, LLMError  # noqa: F401
from agent_chat.models import (  # noqa: F401
    CallState,
    ChatMessage,
    Directive,
    DirectiveError,
    TextSpan,
    TurnResult,
)
from agent_chat.pipeline import ChatSession  # noqa: F401
from agent_chat.registry import CallRegistry, InvalidTransition  # noqa: F401
from agent_chat.tools import (  # noqa: F401
    LocalDispatcher,
    McpDispatcher,
    ToolDispatcher,
    ToolError,
    UnknownToolError,
    format_result,
)
