"""Tool dispatch — runs the function named by a directive.

The orchestrator consumes any object matching the ToolDispatcher protocol:

    async def invoke(self, name: str, params: dict[str, Any]) -> Any: ...

A raised exception means the call failed; its message is shown to the model
as the call result so it can correct itself.

Two implementations are provided:

    LocalDispatcher — in-process registry of Python callables, each with an
                      optional pydantic model that validates the generic
                      ``params`` tree into a typed payload.
    McpDispatcher   — forwards calls to an MCP server over a ClientSession.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from mcp import ClientSession
from mcp.types import TextContent
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

TRUNCATION_SUFFIX = "\n…(truncated)"


class ToolError(Exception):
    """Raised when a tool call cannot be performed or reports a failure."""


class UnknownToolError(ToolError):
    """Raised when no tool is registered under the requested name."""


class ToolDispatcher(Protocol):
    async def invoke(self, name: str, params: dict[str, Any]) -> Any: ...


# ---------------------------------------------------------------------------
# Result serialisation
# ---------------------------------------------------------------------------

def format_result(value: Any, max_chars: int | None = None) -> str:
    """Render a tool result as transcript text.

    Strings pass through; everything else becomes indented JSON. The output
    depends only on the input, so identical results give identical
    transcripts.
    """
    if isinstance(value, str):
        text = value
    else:
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json")
        text = json.dumps(value, indent=2, ensure_ascii=False, default=str)

    if max_chars is not None and len(text) > max_chars:
        text = text[:max_chars] + TRUNCATION_SUFFIX
    return text


# ---------------------------------------------------------------------------
# LocalDispatcher: in-process tools
# ---------------------------------------------------------------------------

def _type_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", None) or str(annotation).replace("typing.", "")


@dataclass
class Tool:
    """A callable exposed to the model.

    ``func`` receives one argument: an instance of ``params_model`` when one
    is set, otherwise the raw params dict. It may be sync or async.
    """

    name: str
    func: Callable[[Any], Any]
    description: str = ""
    params_model: type[BaseModel] | None = None

    def params_hint(self) -> str:
        """Compact params signature for the system prompt, e.g. ``{id: str}``."""
        if self.params_model is None:
            return "{}"
        fields = self.params_model.model_fields
        return "{" + ", ".join(f"{n}: {_type_name(f.annotation)}" for n, f in fields.items()) + "}"


class LocalDispatcher:
    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def add(self, tool: Tool) -> None:
        """Register *tool*, replacing any tool with the same name."""
        self._tools[tool.name] = tool

    def register(
        self,
        name: str | None = None,
        *,
        description: str = "",
        params: type[BaseModel] | None = None,
    ) -> Callable[[Callable[[Any], Any]], Callable[[Any], Any]]:
        """Decorator form of add(). The docstring is the default description."""
        def decorator(func: Callable[[Any], Any]) -> Callable[[Any], Any]:
            self.add(Tool(
                name=name or func.__name__,
                func=func,
                description=description or inspect.getdoc(func) or "",
                params_model=params,
            ))
            return func
        return decorator

    def names(self) -> list[str]:
        return list(self._tools)

    def describe(self) -> list[dict[str, str]]:
        return [
            {"name": t.name, "description": t.description, "params": t.params_hint()}
            for t in self._tools.values()
        ]

    async def invoke(self, name: str, params: dict[str, Any]) -> Any:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(f"Unknown function: {name}")

        arg: Any = params
        if tool.params_model is not None:
            try:
                arg = tool.params_model.model_validate(params)
            except ValidationError as e:
                problems = "; ".join(
                    f"{'.'.join(str(p) for p in err['loc']) or 'params'}: {err['msg']}"
                    for err in e.errors()
                )
                raise ToolError(f"Invalid params for {name}: {problems}") from e

        logger.debug("local tool %s params=%r", name, params)
        result = tool.func(arg)
        if inspect.isawaitable(result):
            result = await result
        return result


# ---------------------------------------------------------------------------
# McpDispatcher: tools hosted by an MCP server
# ---------------------------------------------------------------------------

class McpDispatcher:
    """Dispatches directives to an already-initialised MCP client session."""

    def __init__(self, session: ClientSession) -> None:
        self._session = session

    async def invoke(self, name: str, params: dict[str, Any]) -> Any:
        result = await self._session.call_tool(name, params)
        text = "\n".join(c.text for c in result.content if isinstance(c, TextContent))
        if result.isError:
            raise ToolError(text or f"Tool {name} failed")
        return text

    async def describe(self) -> list[dict[str, str]]:
        listed = await self._session.list_tools()
        return [
            {
                "name": t.name,
                "description": t.description or "",
                "params": json.dumps(t.inputSchema.get("properties", {})),
            }
            for t in listed.tools
        ]
