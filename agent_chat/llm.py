"""LLM client — streaming chat-completion connection to a model backend.

The orchestrator consumes any object matching the ChatLLM protocol:

    def stream(self, messages: list[ChatMessage]) -> AsyncIterator[str]: ...

The iterator yields text chunks of one assistant response in arrival order
and ends when the response is complete. Transport problems surface as
LLMError, raised from the iterator.

Two implementations are provided:

    HttpChatLLM  — OpenAI-compatible /v1/chat/completions client using
                   server-sent events for streaming.
    EchoChatLLM  — streams the last prompt back, word by word.
                   Useful for smoke-testing the session wiring without a
                   running model.

Tests use StubLLM (defined in the test helpers) for scripted chunks.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import AsyncIterator, Iterator, Sequence
from contextlib import contextmanager
from typing import Protocol

import httpx

from agent_chat.models import ChatMessage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class ChatLLM(Protocol):
    def stream(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]: ...

    async def complete(self, messages: Sequence[ChatMessage]) -> str: ...

    async def list_models(self) -> list[str]: ...


# ---------------------------------------------------------------------------
# HttpChatLLM: connects to a real backend
# ---------------------------------------------------------------------------

def _sse_content(data: str) -> str | None:
    """Extract ``choices[0].delta.content`` from one SSE data payload."""
    try:
        return json.loads(data)["choices"][0]["delta"].get("content")
    except (json.JSONDecodeError, KeyError, IndexError, TypeError, AttributeError):
        logger.debug("skipping unparseable stream event: %r", data)
        return None


class HttpChatLLM:
    """Async HTTP client for OpenAI-compatible chat backends.

    Endpoints:
      POST /v1/chat/completions  {"model", "messages", "stream"}
        stream=true  → server-sent events, ``data: {...}`` per chunk,
                       terminated by ``data: [DONE]``
        stream=false → {"choices": [{"message": {"content": "..."}}]}
      GET  /v1/models            → {"data": [{"id": "..."}]}

    Args:
        base_url:  Base URL of the backend, e.g. "https://api.openai.com".
        api_key:   Bearer token, or empty string if not required.
        model:     Model identifier sent with every chat request.
        timeout:   Connect/request timeout in seconds. Streams have no read
                   timeout, a long answer may take as long as it needs.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        model: str = "",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _client(self, read_timeout: float | None) -> httpx.AsyncClient:
        timeout = httpx.Timeout(self._timeout, read=read_timeout)
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    def _chat_body(self, messages: Sequence[ChatMessage], stream: bool) -> dict:
        return {
            "model": self._model,
            "messages": [m.model_dump() for m in messages],
            "stream": stream,
        }

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM request failed: {e}") from e

    async def stream(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        url = f"{self._base_url}/v1/chat/completions"
        body = self._chat_body(messages, stream=True)
        logger.debug("llm stream url=%s messages=%d", url, len(messages))

        with self._translate_errors():
            async with self._client(read_timeout=None) as client:
                async with client.stream("POST", url, json=body, headers=self._headers()) as resp:
                    resp.raise_for_status()
                    async for line in resp.aiter_lines():
                        if not line.startswith("data:"):
                            continue
                        data = line[len("data:"):].strip()
                        if data == "[DONE]":
                            break
                        content = _sse_content(data)
                        if content:
                            yield content

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        url = f"{self._base_url}/v1/chat/completions"
        body = self._chat_body(messages, stream=False)
        logger.debug("llm complete url=%s messages=%d", url, len(messages))

        with self._translate_errors():
            async with self._client(read_timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()

        try:
            return resp.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMError("Unexpected response format from chat backend") from e

    async def list_models(self) -> list[str]:
        url = f"{self._base_url}/v1/models"
        with self._translate_errors():
            async with self._client(read_timeout=self._timeout) as client:
                resp = await client.get(url, headers=self._headers())
                resp.raise_for_status()

        try:
            return [m["id"] for m in resp.json()["data"]]
        except (ValueError, KeyError, TypeError) as e:
            raise LLMError("Unexpected response format from models endpoint") from e


# ---------------------------------------------------------------------------
# EchoChatLLM: echoes the user; useful for session smoke tests
# ---------------------------------------------------------------------------

class EchoChatLLM:
    """Streams the last prompt back, one word per chunk. No network.

    Send it text containing a ``::function::`` directive to exercise the
    whole detect/execute/continue loop without a model: the continuation
    echoes the injected tool result.
    """

    @staticmethod
    def _last_prompt(messages: Sequence[ChatMessage]) -> str:
        """Latest user message, or the tool result injected after it."""
        for i in range(len(messages) - 1, -1, -1):
            message = messages[i]
            if message.role == "user" or (message.role == "system" and i > 0):
                return message.content
        return ""

    async def stream(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        text = self._last_prompt(messages)
        logger.debug("EchoChatLLM streaming len=%d", len(text))
        for piece in re.findall(r"\s*\S+\s*", text):
            yield piece

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        return self._last_prompt(messages)

    async def list_models(self) -> list[str]:
        return ["echo"]


# ---------------------------------------------------------------------------
# LLMError: raised for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
