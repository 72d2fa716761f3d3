"""Observable value cells used by view-models.

`StateField` holds a single current value, notifies every subscriber on
change and skips equal writes. A write made from inside a subscriber is
queued and delivered after the current value reached every subscriber.
`SharedState` projects an async stream into a `StateField` and only
collects the stream while someone is listening, with a retention window
after the last subscriber leaves.

Both are toolkit-free; UI layers marshal callbacks onto their own thread.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator, Callable
import threading
from typing import Any, Generic, TypeVar

from loguru import logger

from core.scope import TaskScope

T = TypeVar("T")


class Subscription:
    """Handle returned by `subscribe`; call `dispose()` to stop receiving values."""

    def __init__(self, on_dispose: Callable[[], None]) -> None:
        self._on_dispose = on_dispose
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._on_dispose()


class StateField(Generic[T]):
    """Single-writer observable value with multicast notifications."""

    def __init__(self, initial: T, name: str = "") -> None:
        self._value = initial
        self._name = name
        self._subscribers: list[Callable[[T], Any]] = []
        self._lock = threading.Lock()
        self._queued: deque[T] = deque()
        self._delivering = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self.set(new_value)

    def set(self, new_value: T) -> None:
        """Store `new_value` and notify subscribers unless it equals the current one."""
        if new_value == self._value:
            return
        self._value = new_value
        self._queued.append(new_value)
        if self._delivering:
            return
        self._delivering = True
        try:
            while self._queued:
                value = self._queued.popleft()
                with self._lock:
                    subscribers = list(self._subscribers)
                for callback in subscribers:
                    self._deliver(callback, value)
        finally:
            self._delivering = False

    def _deliver(self, callback: Callable[[T], Any], value: T) -> None:
        try:
            callback(value)
        except Exception as ex:
            logger.exception("Subscriber of '{}' failed: {}", self._name, ex)

    def subscribe(self, callback: Callable[[T], Any], emit_current: bool = True) -> Subscription:
        """Register `callback`; it receives the current value first unless disabled."""
        with self._lock:
            self._subscribers.append(callback)
        if emit_current:
            self._deliver(callback, self._value)
        return Subscription(lambda: self._unsubscribe(callback))

    def _unsubscribe(self, callback: Callable[[T], Any]) -> None:
        with self._lock:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def as_read_only(self) -> ReadOnlyField[T]:
        return ReadOnlyField(self)


class ReadOnlyField(Generic[T]):
    """Consumer view of a `StateField` without write access."""

    def __init__(self, field: StateField[T]) -> None:
        self._field = field

    @property
    def value(self) -> T:
        return self._field.value

    def subscribe(self, callback: Callable[[T], Any], emit_current: bool = True) -> Subscription:
        return self._field.subscribe(callback, emit_current)


class SharedState(Generic[T]):
    """Collects an async stream into a `StateField` while it has subscribers.

    The upstream starts with the first subscriber. When the last one leaves,
    collection continues for `stop_timeout` seconds so a quick resubscribe
    does not restart the stream. The last value is kept after stopping.
    """

    def __init__(
        self,
        source: Callable[[], AsyncIterator[T]],
        scope: TaskScope,
        initial: T,
        stop_timeout: float = 5.0,
        name: str = "",
    ) -> None:
        self._source = source
        self._scope = scope
        self._field: StateField[T] = StateField(initial, name=name)
        self._stop_timeout = max(0.0, float(stop_timeout))
        self._collector: asyncio.Task | None = None
        self._stop_handle: asyncio.TimerHandle | None = None
        self._name = name

    @property
    def value(self) -> T:
        return self._field.value

    @property
    def is_collecting(self) -> bool:
        return self._collector is not None and not self._collector.done()

    def subscribe(self, callback: Callable[[T], Any], emit_current: bool = True) -> Subscription:
        inner = self._field.subscribe(callback, emit_current)
        if self._field.subscriber_count == 1:
            self._scope.run_on_loop(self._on_active)

        def _dispose() -> None:
            inner.dispose()
            if self._field.subscriber_count == 0:
                self._scope.run_on_loop(self._on_idle)

        return Subscription(_dispose)

    def _on_active(self) -> None:
        if self._stop_handle is not None:
            self._stop_handle.cancel()
            self._stop_handle = None
        if self.is_collecting or self._scope.is_closed:
            return
        logger.debug("Start collecting '{}'", self._name)
        self._collector = self._scope.launch(self._collect())

    def _on_idle(self) -> None:
        if self._field.subscriber_count > 0 or not self.is_collecting:
            return
        if self._stop_handle is not None:
            self._stop_handle.cancel()
        self._stop_handle = self._scope.loop.call_later(self._stop_timeout, self._stop)

    def _stop(self) -> None:
        self._stop_handle = None
        if self._field.subscriber_count > 0:
            return
        if self._collector is not None and not self._collector.done():
            logger.debug("Stop collecting '{}' after retention window", self._name)
            self._collector.cancel()
        self._collector = None

    async def _collect(self) -> None:
        try:
            async for value in self._source():
                self._field.set(value)
        except Exception as ex:
            logger.exception("Upstream of '{}' failed: {}", self._name, ex)
