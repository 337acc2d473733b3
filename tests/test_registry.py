"""Tests for agent_chat.registry — CallRegistry."""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from agent_chat.models import CallState
from agent_chat.registry import CallRegistry, InvalidTransition


class TestTransitions:
    def test_unknown_key_is_idle(self) -> None:
        state = CallRegistry().get(7)
        assert state == CallState(status="idle", result=None, error=None)

    def test_claim_once(self) -> None:
        reg = CallRegistry()
        assert reg.claim(2) is True
        assert reg.get(2).status == "executing"
        assert reg.claim(2) is False

    def test_complete(self) -> None:
        reg = CallRegistry()
        reg.claim(2)
        reg.complete(2, "launched")
        assert reg.get(2) == CallState(status="succeeded", result="launched")

    def test_fail(self) -> None:
        reg = CallRegistry()
        reg.claim(2)
        reg.fail(2, "Error: boom")
        assert reg.get(2) == CallState(status="failed", error="Error: boom")

    def test_finished_key_cannot_be_reclaimed(self) -> None:
        reg = CallRegistry()
        reg.claim(1)
        reg.complete(1, "ok")
        reg.claim(3)
        reg.fail(3, "no")
        assert reg.claim(1) is False
        assert reg.claim(3) is False

    def test_complete_without_claim_raises(self) -> None:
        with pytest.raises(InvalidTransition):
            CallRegistry().complete(5, "x")

    def test_fail_after_complete_raises(self) -> None:
        reg = CallRegistry()
        reg.claim(5)
        reg.complete(5, "x")
        with pytest.raises(InvalidTransition):
            reg.fail(5, "late")
        assert reg.get(5).status == "succeeded"

    def test_tuple_keys_are_independent(self) -> None:
        reg = CallRegistry()
        assert reg.claim((4, 0)) is True
        assert reg.claim((4, 1)) is True
        assert reg.claim((4, 0)) is False
        assert reg.get(4).status == "idle"

    def test_has_any_executing(self) -> None:
        reg = CallRegistry()
        assert reg.has_any_executing() is False
        reg.claim(1)
        assert reg.has_any_executing() is True
        reg.complete(1, "done")
        assert reg.has_any_executing() is False

    def test_snapshot_is_a_copy(self) -> None:
        reg = CallRegistry()
        reg.claim(1)
        snap = reg.snapshot()
        reg.claim(2)
        assert list(snap) == [1]
        assert set(reg.snapshot()) == {1, 2}


class TestConcurrentClaims:
    def test_threads_exactly_one_wins(self) -> None:
        reg = CallRegistry()
        workers = 32
        barrier = threading.Barrier(workers)

        def attempt() -> bool:
            barrier.wait()
            return reg.claim(9)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda _: attempt(), range(workers)))

        assert results.count(True) == 1
        assert reg.get(9).status == "executing"

    async def test_tasks_exactly_one_wins(self) -> None:
        reg = CallRegistry()

        async def attempt() -> bool:
            await asyncio.sleep(0)
            return reg.claim(3)

        results = await asyncio.gather(*(attempt() for _ in range(50)))
        assert results.count(True) == 1

    def test_many_keys_each_claimed_once(self) -> None:
        reg = CallRegistry()
        keys = list(range(20)) * 10

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(reg.claim, keys))

        assert results.count(True) == 20
