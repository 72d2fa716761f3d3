"""Structured task scope bound to an asyncio loop.

A `TaskScope` owns every coroutine launched on behalf of one screen. The
scope can be used from the loop thread itself or from any other thread
(e.g. the Qt GUI thread); cancellation tears down all live tasks at once.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
import concurrent.futures
import threading
from typing import Any

from loguru import logger


class TaskScope:
    """Launches and tracks tasks on a single event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop, name: str = "scope") -> None:
        self._loop = loop
        self._name = name
        self._tasks: set[asyncio.Task] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def launch(
        self, coro: Coroutine[Any, Any, Any]
    ) -> asyncio.Task | concurrent.futures.Future | None:
        """Schedule `coro` in this scope without waiting for it.

        Returns the task when called on the loop thread, a concurrent future
        otherwise, or None when the scope is already closed.
        """
        if self._closed:
            coro.close()
            logger.warning("Launch on closed scope '{}' ignored", self._name)
            return None
        if self._on_loop_thread():
            return self._create_task(coro)
        return asyncio.run_coroutine_threadsafe(self._run_tracked(coro), self._loop)

    def run_on_loop(self, callback, *args) -> None:
        """Run a plain callback on the loop thread (inline when already there)."""
        if self._on_loop_thread():
            callback(*args)
        else:
            self._loop.call_soon_threadsafe(callback, *args)

    def _create_task(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = self._loop.create_task(coro)
        with self._lock:
            self._tasks.add(task)
        task.add_done_callback(self._forget)
        return task

    async def _run_tracked(self, coro: Coroutine[Any, Any, Any]) -> Any:
        task = asyncio.current_task()
        if task is not None:
            with self._lock:
                self._tasks.add(task)
            task.add_done_callback(self._forget)
        if self._closed:
            coro.close()
            raise asyncio.CancelledError()
        return await coro

    def _forget(self, task: asyncio.Task) -> None:
        with self._lock:
            self._tasks.discard(task)

    def active_count(self) -> int:
        with self._lock:
            return len(self._tasks)

    def cancel_all(self) -> None:
        """Cancel every live task and refuse further launches."""
        self._closed = True
        with self._lock:
            tasks = list(self._tasks)
        if not tasks:
            return
        logger.info("Cancelling {} task(s) in scope '{}'", len(tasks), self._name)
        for task in tasks:
            if self._on_loop_thread():
                task.cancel()
            else:
                self._loop.call_soon_threadsafe(task.cancel)

    async def join(self) -> None:
        """Wait until every task currently in the scope has finished."""
        while True:
            with self._lock:
                pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)
