"""Core domain models.

The scanner, registry and orchestrator all operate on these types.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]

DirectiveErrorReason = Literal[
    "unclosed_brace",
    "non_json_payload",
    "missing_required_field",
    "malformed_json",
]

CallStatus = Literal["idle", "executing", "succeeded", "failed"]

# Message index, or (message index, occurrence index) when one message
# may carry several directives.
CallKey = Union[int, tuple[int, int]]


class ChatMessage(BaseModel):
    """A single entry in the append-only conversation."""

    role: Role
    content: str


class TextSpan(BaseModel):
    """Plain text between (or around) directives."""

    kind: Literal["text"] = "text"
    text: str
    start: int
    end: int


class Directive(BaseModel):
    """A parsed ``::function::{...}`` call. ``raw`` is ``text[start:end]``."""

    kind: Literal["directive"] = "directive"
    name: str
    params: dict[str, Any]
    raw: str
    start: int
    end: int

    @property
    def span(self) -> tuple[int, int]:
        return self.start, self.end


class DirectiveError(BaseModel):
    """A marker followed by a closed JSON object that is not a valid call."""

    kind: Literal["error"] = "error"
    reason: DirectiveErrorReason
    message: str
    raw: str
    start: int
    end: int

    @property
    def span(self) -> tuple[int, int]:
        return self.start, self.end


ParseOutcome = Union[Directive, DirectiveError]

Segment = Annotated[Union[TextSpan, Directive, DirectiveError], Field(discriminator="kind")]


class CallState(BaseModel):
    """Execution state of one directive occurrence."""

    model_config = ConfigDict(frozen=True)

    status: CallStatus = "idle"
    result: str | None = None
    error: str | None = None


class TurnResult(BaseModel):
    """Messages appended by one ``send()`` and the call states it produced."""

    start_index: int
    messages: list[ChatMessage] = Field(default_factory=list)
    calls: dict[int, CallState] = Field(default_factory=dict)
