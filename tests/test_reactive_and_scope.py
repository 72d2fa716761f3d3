from __future__ import annotations

import asyncio
import concurrent.futures
import time

import pytest

from core.reactive import StateField
from core.scope import TaskScope
from infrastructure.event_loop import LoopThread


def test_state_field_multicasts_and_skips_equal_writes() -> None:
    field = StateField(0, "counter")
    a: list[int] = []
    b: list[int] = []
    field.subscribe(a.append)
    sub_b = field.subscribe(b.append, emit_current=False)

    field.value = 1
    field.value = 1
    sub_b.dispose()
    field.value = 2

    assert a == [0, 1, 2]
    assert b == [1]
    assert field.subscriber_count == 1


def test_state_field_keeps_notifying_after_failing_subscriber() -> None:
    field = StateField("a")
    seen: list[str] = []

    def broken(_: str) -> None:
        raise RuntimeError("subscriber bug")

    field.subscribe(broken, emit_current=False)
    field.subscribe(seen.append, emit_current=False)
    field.value = "b"

    assert seen == ["b"]
    assert field.value == "b"


def test_write_from_subscriber_is_delivered_after_current_value() -> None:
    field = StateField(None, "error_message")
    later: list = []

    def consume(message) -> None:
        if message is not None:
            field.value = None

    field.subscribe(consume, emit_current=False)
    field.subscribe(later.append, emit_current=False)
    field.value = "boom"

    assert later == ["boom", None]
    assert field.value is None


def test_read_only_view_has_no_setter() -> None:
    view = StateField(3).as_read_only()

    assert view.value == 3
    with pytest.raises(AttributeError):
        view.value = 4  # type: ignore[misc]


def test_scope_launch_on_loop_thread_returns_task() -> None:
    async def scenario() -> None:
        scope = TaskScope(asyncio.get_running_loop())

        async def answer() -> int:
            return 42

        task = scope.launch(answer())
        assert isinstance(task, asyncio.Task)
        assert await task == 42
        await scope.join()
        assert scope.active_count() == 0

    asyncio.run(scenario())


def test_scope_cancel_all_from_loop_thread() -> None:
    async def scenario() -> None:
        scope = TaskScope(asyncio.get_running_loop())
        sleeper = scope.launch(asyncio.sleep(10))
        await asyncio.sleep(0)

        scope.cancel_all()
        await scope.join()

        assert sleeper.cancelled()
        assert scope.is_closed
        assert scope.launch(asyncio.sleep(0)) is None

    asyncio.run(scenario())


def test_scope_from_foreign_thread_uses_background_loop() -> None:
    loop_thread = LoopThread(name="test-loop")
    loop = loop_thread.start()
    try:
        scope = TaskScope(loop, "foreign")

        async def double(x: int) -> int:
            await asyncio.sleep(0)
            return x * 2

        fut = scope.launch(double(21))
        assert isinstance(fut, concurrent.futures.Future)
        assert fut.result(timeout=2) == 42

        sleeper = scope.launch(asyncio.sleep(10))
        deadline = time.monotonic() + 2
        while scope.active_count() == 0 and time.monotonic() < deadline:
            time.sleep(0.01)
        scope.cancel_all()

        with pytest.raises(concurrent.futures.CancelledError):
            sleeper.result(timeout=2)
    finally:
        loop_thread.stop()


def test_run_on_loop_is_inline_on_loop_thread() -> None:
    async def scenario() -> None:
        scope = TaskScope(asyncio.get_running_loop())
        calls: list[int] = []
        scope.run_on_loop(calls.append, 1)
        assert calls == [1]

    asyncio.run(scenario())
