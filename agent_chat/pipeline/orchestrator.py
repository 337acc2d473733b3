"""Conversation orchestrator — runs one user turn end-to-end.

Turn flow:
  1. Append the user message and an empty assistant placeholder.
  2. Stream the model reply into the placeholder. A producer task pushes
     chunks through a bounded channel; the session appends them in arrival
     order, mutating the placeholder in place.
  3. Once the stream completes, scan the reply and take its last directive.
     Nothing is scanned mid-stream: a half-written call is not a call yet.
  4. Claim the directive under the reply's message index. A key that was
     already claimed ends the turn quietly.
  5. Dispatch the call and append the result, or the error text, as a
     system message.
  6. Stream a continuation with a fresh placeholder and go back to 3.
     The turn ends at the first reply without a directive, or after
     max_tool_rounds executed calls.

Errors never leave send(): a failing stream gets inline error text appended
to whatever it produced, and a failing tool becomes the result message so
the model can react to it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Literal

from agent_chat.directives import last_directive
from agent_chat.llm import ChatLLM, LLMError
from agent_chat.models import ChatMessage, Role, TurnResult
from agent_chat.registry import CallRegistry
from agent_chat.tools import ToolDispatcher, format_result

logger = logging.getLogger(__name__)

STREAM_ERROR_TEXT = "\n\n**Error:** An error occurred while fetching the response."
CANCELLED_TEXT = "Error: cancelled"
RESULT_ROLE: Role = "system"
DEFAULT_MAX_TOOL_ROUNDS = 8
_CHANNEL_SIZE = 64

SessionState = Literal["idle", "streaming", "executing"]
UpdateCallback = Callable[[int, ChatMessage], None]


class ChatSession:
    """One conversation: its transcript, its call registry and its turn loop.

    ``on_update(index, message)`` is called every time a message is appended
    or grows by a chunk.
    """

    def __init__(
        self,
        *,
        llm: ChatLLM,
        dispatcher: ToolDispatcher,
        system_prompt: str | None = None,
        on_update: UpdateCallback | None = None,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        result_max_chars: int | None = None,
    ) -> None:
        self._llm = llm
        self._dispatcher = dispatcher
        self._system_prompt = system_prompt
        self._on_update = on_update
        self._max_tool_rounds = max_tool_rounds
        self._result_max_chars = result_max_chars
        self._state: SessionState = "idle"
        self._messages: list[ChatMessage] = []
        self._registry = CallRegistry()
        self._seed()

    def _seed(self) -> None:
        if self._system_prompt:
            self._messages.append(ChatMessage(role="system", content=self._system_prompt))

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def registry(self) -> CallRegistry:
        return self._registry

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_busy(self) -> bool:
        """True while a stream is open or any call is still executing."""
        return self._state != "idle" or self._registry.has_any_executing()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def send(self, text: str) -> TurnResult | None:
        """Run one user turn. Returns None when the input is blank or ignored."""
        if not text.strip():
            return None
        if self.is_busy:
            logger.warning("session busy (%s), input ignored", self._state)
            return None

        start = len(self._messages)
        self._state = "streaming"
        try:
            self._append("user", text)
            await self._converse()
        finally:
            self._state = "idle"
        return self._turn_result(start)

    async def execute_directive(self, index: int) -> bool:
        """Execute the last directive of the assistant message at *index*.

        Used for manual retries. False when the session is busy, the message
        has no directive, or the directive was already claimed.
        """
        if self.is_busy:
            return False
        if not 0 <= index < len(self._messages) or self._messages[index].role != "assistant":
            return False

        self._state = "executing"
        try:
            if not await self._execute(index):
                return False
            await self._converse(after_call=True)
            return True
        finally:
            self._state = "idle"

    def clear(self) -> bool:
        """Drop the conversation, keeping only the system prompt."""
        if self.is_busy:
            return False
        self._messages = []
        self._registry = CallRegistry()
        self._seed()
        return True

    # ------------------------------------------------------------------
    # Turn loop
    # ------------------------------------------------------------------

    async def _converse(self, after_call: bool = False) -> None:
        rounds = 1 if after_call else 0
        while True:
            index = await self._stream_reply()
            if index is None:
                return
            if rounds >= self._max_tool_rounds:
                if last_directive(self._messages[index].content) is not None:
                    logger.warning(
                        "tool round limit (%d) reached, directive in message %d not run",
                        self._max_tool_rounds, index,
                    )
                return
            if not await self._execute(index):
                return
            rounds += 1

    async def _stream_reply(self) -> int | None:
        """Stream one assistant reply. Returns its index, or None on failure."""
        history = [m.model_copy() for m in self._messages]
        index = self._append("assistant", "")
        placeholder = self._messages[index]
        self._state = "streaming"

        channel: asyncio.Queue[str | Exception | None] = asyncio.Queue(maxsize=_CHANNEL_SIZE)
        producer = asyncio.create_task(self._pump(history, channel))
        failed = False
        try:
            while (item := await channel.get()) is not None:
                if isinstance(item, Exception):
                    logger.warning("stream for message %d failed: %s", index, item)
                    placeholder.content += STREAM_ERROR_TEXT
                    failed = True
                else:
                    placeholder.content += item
                self._notify(index)
            await producer
        finally:
            if not producer.done():
                producer.cancel()

        logger.debug("message %d complete len=%d", index, len(placeholder.content))
        return None if failed else index

    async def _pump(
        self,
        history: Sequence[ChatMessage],
        channel: asyncio.Queue[str | Exception | None],
    ) -> None:
        try:
            async for chunk in self._llm.stream(history):
                await channel.put(chunk)
        except LLMError as e:
            await channel.put(e)
        except Exception as e:
            logger.exception("unexpected error from chat backend")
            await channel.put(e)
        finally:
            await channel.put(None)

    async def _execute(self, index: int) -> bool:
        """Run the last directive of message *index*. True if a result was appended."""
        directive = last_directive(self._messages[index].content)
        if directive is None:
            return False
        if not self._registry.claim(index):
            logger.debug("directive in message %d already handled", index)
            return False

        self._state = "executing"
        logger.info("executing %s for message %d", directive.name, index)
        try:
            value = await self._dispatcher.invoke(directive.name, directive.params)
            text = format_result(value, self._result_max_chars)
        except Exception as e:
            text = f"Error: {str(e) or 'Unknown error'}"
            logger.warning("function %s failed: %s", directive.name, text)
            self._registry.fail(index, text)
        except BaseException:
            # Cancelled mid-call: the key must not stay executing.
            logger.warning("function %s cancelled for message %d", directive.name, index)
            self._registry.fail(index, CANCELLED_TEXT)
            raise
        else:
            self._registry.complete(index, text)

        self._append(RESULT_ROLE, text)
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _append(self, role: Role, content: str) -> int:
        self._messages.append(ChatMessage(role=role, content=content))
        index = len(self._messages) - 1
        self._notify(index)
        return index

    def _notify(self, index: int) -> None:
        if self._on_update is not None:
            self._on_update(index, self._messages[index])

    def _turn_result(self, start: int) -> TurnResult:
        calls = {
            key: state for key, state in self._registry.snapshot().items()
            if isinstance(key, int) and key >= start
        }
        return TurnResult(
            start_index=start,
            messages=[m.model_copy() for m in self._messages[start:]],
            calls=calls,
        )
