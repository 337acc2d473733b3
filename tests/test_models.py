"""Tests for agent_chat.models."""

import pytest
from pydantic import TypeAdapter, ValidationError

from agent_chat.directives import split
from agent_chat.models import (
    CallState,
    ChatMessage,
    Directive,
    DirectiveError,
    Segment,
    TextSpan,
    TurnResult,
)


class TestChatMessage:
    def test_fields(self) -> None:
        m = ChatMessage(role="user", content="hi")
        assert m.role == "user"
        assert m.content == "hi"

    def test_invalid_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChatMessage(role="tool", content="x")

    def test_content_is_mutable(self) -> None:
        m = ChatMessage(role="assistant", content="")
        m.content += "chunk"
        assert m.content == "chunk"


class TestSegments:
    def test_kinds(self) -> None:
        assert TextSpan(text="a", start=0, end=1).kind == "text"
        d = Directive(name="a", params={}, raw="r", start=0, end=1)
        assert d.kind == "directive"
        e = DirectiveError(reason="malformed_json", message="m", raw="r", start=2, end=3)
        assert e.kind == "error"
        assert e.span == (2, 3)

    def test_invalid_reason_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DirectiveError(reason="bad", message="m", raw="r", start=0, end=1)

    def test_serialised_segments_validate_back(self) -> None:
        text = 'a ::function::{"name":"x","params":{"k":1}} b ::function::{"name":1,"params":{}}'
        dumped = [s.model_dump() for s in split(text)]
        restored = TypeAdapter(list[Segment]).validate_python(dumped)
        assert [type(s) for s in restored] == [TextSpan, Directive, TextSpan, DirectiveError]
        assert restored[1].params == {"k": 1}


class TestCallState:
    def test_defaults_to_idle(self) -> None:
        state = CallState()
        assert state.status == "idle"
        assert state.result is None
        assert state.error is None

    def test_frozen(self) -> None:
        state = CallState(status="succeeded", result="ok")
        with pytest.raises(ValidationError):
            state.status = "failed"


class TestTurnResult:
    def test_dump(self) -> None:
        result = TurnResult(
            start_index=1,
            messages=[ChatMessage(role="user", content="go")],
            calls={2: CallState(status="failed", error="Error: x")},
        )
        data = result.model_dump()
        assert data["start_index"] == 1
        assert data["messages"] == [{"role": "user", "content": "go"}]
        assert data["calls"][2]["error"] == "Error: x"
