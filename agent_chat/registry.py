"""Per-directive execution state with an at-most-once claim.

Every directive occurrence is identified by a CallKey (the index of the
assistant message carrying it). A key moves strictly forward:

    idle → executing → succeeded | failed

``claim()`` is the only way into ``executing`` and it checks and sets under
one lock, so an automatic detector and a manual retry racing for the same key
cannot both win. The lock is a plain ``threading.Lock`` and nothing awaits
while holding it, which makes the claim atomic for threads and asyncio tasks
alike.
"""

from __future__ import annotations

import logging
import threading

from agent_chat.models import CallKey, CallState

logger = logging.getLogger(__name__)

_IDLE = CallState()


class InvalidTransition(RuntimeError):
    """Raised when complete()/fail() is called on a key that is not executing."""


class CallRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: dict[CallKey, CallState] = {}

    def claim(self, key: CallKey) -> bool:
        """Move *key* from idle to executing. False if it was ever claimed."""
        with self._lock:
            current = self._states.get(key, _IDLE)
            if current.status != "idle":
                logger.debug("claim rejected key=%r status=%s", key, current.status)
                return False
            self._states[key] = CallState(status="executing")
        logger.debug("claimed key=%r", key)
        return True

    def complete(self, key: CallKey, result: str) -> None:
        self._finish(key, CallState(status="succeeded", result=result))

    def fail(self, key: CallKey, error: str) -> None:
        self._finish(key, CallState(status="failed", error=error))

    def _finish(self, key: CallKey, state: CallState) -> None:
        with self._lock:
            current = self._states.get(key, _IDLE)
            if current.status != "executing":
                raise InvalidTransition(
                    f"Call {key!r} is {current.status}, cannot become {state.status}"
                )
            self._states[key] = state

    def get(self, key: CallKey) -> CallState:
        with self._lock:
            return self._states.get(key, _IDLE)

    def has_any_executing(self) -> bool:
        with self._lock:
            return any(s.status == "executing" for s in self._states.values())

    def snapshot(self) -> dict[CallKey, CallState]:
        """Copy of all claimed keys and their states."""
        with self._lock:
            return dict(self._states)
