"""Inline function-call directives embedded in model output.

Wire format, anywhere inside natural-language text:

    ::function::{"name": "<tool-name>", "params": {<json-object>}}

Zero or more whitespace characters may separate the marker from the opening
brace. The JSON object is delimited by brace-depth counting, so nested
objects inside ``params`` work. Braces inside string values are counted
too; an unbalanced brace inside a string moves the end of the object.

The scanner runs on partially streamed text. An opening brace that is never
closed is therefore not an error: it is a directive still being written, and
it produces no outcome at all until its closing brace arrives.
"""

from __future__ import annotations

import json
from typing import Any, Sequence

from agent_chat.models import Directive, DirectiveError, ParseOutcome, Segment, TextSpan

FUNCTION_CALL_MARKER = "::function::"


class _NonStrictJson(ValueError):
    """Raised while decoding NaN/Infinity, which strict JSON does not allow."""


def _reject_constant(name: str) -> Any:
    raise _NonStrictJson(name)


def _find_object_end(text: str, open_index: int) -> int:
    """Return the index just past the brace closing ``text[open_index]``, or -1."""
    depth = 0
    for i in range(open_index, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return -1


def _parse_call(text: str, start: int, open_index: int, end: int) -> ParseOutcome:
    payload = text[open_index:end]
    raw = text[start:end]
    try:
        data = json.loads(payload, parse_constant=_reject_constant)
    except _NonStrictJson:
        return DirectiveError(
            reason="non_json_payload", message=f"Invalid JSON: {payload}",
            raw=raw, start=start, end=end,
        )
    except (json.JSONDecodeError, RecursionError):
        return DirectiveError(
            reason="malformed_json", message=f"Invalid JSON: {payload}",
            raw=raw, start=start, end=end,
        )

    name = data.get("name")
    params = data.get("params")
    if not isinstance(name, str) or not name or not isinstance(params, dict):
        return DirectiveError(
            reason="missing_required_field", message=f"Invalid Call Structure: {payload}",
            raw=raw, start=start, end=end,
        )
    return Directive(name=name, params=params, raw=raw, start=start, end=end)


def scan(text: str) -> list[ParseOutcome]:
    """Find every directive in *text*, in source order.

    Never raises. Malformed calls come back as DirectiveError entries; markers
    with no brace, with text before the brace, or with an unclosed brace are
    skipped silently.
    """
    outcomes: list[ParseOutcome] = []
    cursor = 0

    while True:
        start = text.find(FUNCTION_CALL_MARKER, cursor)
        if start == -1:
            break
        after_marker = start + len(FUNCTION_CALL_MARKER)

        open_index = text.find("{", after_marker)
        if open_index == -1:
            cursor = after_marker
            continue

        if text[after_marker:open_index].strip():
            # Prose between marker and brace: the marker was just text. Resume
            # right after it, another marker may sit before that brace.
            cursor = after_marker
            continue

        end = _find_object_end(text, open_index)
        if end == -1:
            cursor = open_index + 1
            continue

        outcomes.append(_parse_call(text, start, open_index, end))
        cursor = end

    return outcomes


def split(text: str) -> list[Segment]:
    """Split *text* into text spans and parsed outcomes, in source order.

    The segments tile the input: joining their source ranges gives back
    *text* exactly. Empty input gives an empty list.
    """
    segments: list[Segment] = []
    last = 0
    for outcome in scan(text):
        if outcome.start > last:
            segments.append(TextSpan(text=text[last:outcome.start], start=last, end=outcome.start))
        segments.append(outcome)
        last = outcome.end
    if last < len(text):
        segments.append(TextSpan(text=text[last:], start=last, end=len(text)))
    return segments


def segments_to_text(segments: Sequence[Segment]) -> str:
    """Reassemble the source text from split() output."""
    parts: list[str] = []
    for seg in segments:
        parts.append(seg.text if isinstance(seg, TextSpan) else seg.raw)
    return "".join(parts)


def last_directive(source: str | Sequence[ParseOutcome]) -> Directive | None:
    """Return the last successful directive, or None.

    Only the final directive of a message is ever executed; earlier ones in
    the same text are ignored.
    """
    outcomes = scan(source) if isinstance(source, str) else source
    for outcome in reversed(outcomes):
        if isinstance(outcome, Directive):
            return outcome
    return None
