"""Scripted stand-ins for the model stream and the tool dispatcher."""

from typing import Any

from agent_chat.models import ChatMessage
from agent_chat.tools import UnknownToolError


class StubLLM:
    """Replays scripted replies, one per stream() call.

    Each reply is a list of chunks; an Exception in the list is raised at
    that point of the stream. Every history the session sent is recorded.
    """

    def __init__(self, replies: list[list[Any]]) -> None:
        self.replies = list(replies)
        self.histories: list[list[ChatMessage]] = []

    async def stream(self, messages):
        self.histories.append([m.model_copy() for m in messages])
        reply = self.replies.pop(0) if self.replies else []
        for item in reply:
            if isinstance(item, Exception):
                raise item
            yield item

    async def complete(self, messages) -> str:
        return "".join(c async for c in self.stream(messages))

    async def list_models(self) -> list[str]:
        return ["stub"]


class StubDispatcher:
    """Returns (or raises) a fixed value per tool name and records calls."""

    def __init__(self, results: dict[str, Any]) -> None:
        self.results = results
        self.calls: list[tuple[str, dict]] = []

    async def invoke(self, name: str, params: dict) -> Any:
        self.calls.append((name, params))
        if name not in self.results:
            raise UnknownToolError(f"Unknown function: {name}")
        value = self.results[name]
        if isinstance(value, Exception):
            raise value
        return value


def directive(name: str, params: str = "{}") -> str:
    return '::function::{"name": "%s", "params": %s}' % (name, params)
