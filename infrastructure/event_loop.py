"""Background asyncio loop for the Qt application.

Qt owns the main thread, so view-model tasks run on an asyncio loop hosted
by a daemon thread. Results travel back to the GUI through Qt signals.
"""

from __future__ import annotations

import asyncio
import threading

from loguru import logger


class LoopThread:
    """Runs an asyncio event loop on a dedicated thread."""

    def __init__(self, name: str = "cityspots-loop") -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._started = threading.Event()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def start(self) -> asyncio.AbstractEventLoop:
        self._thread.start()
        self._started.wait()
        return self._loop

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._started.set)
        logger.info("Event loop thread started")
        try:
            self._loop.run_forever()
        finally:
            self._loop.run_until_complete(self._cancel_pending())
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())
            self._loop.close()
            logger.info("Event loop thread stopped")

    async def _cancel_pending(self) -> None:
        tasks = [t for t in asyncio.all_tasks(self._loop) if t is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop, cancelling whatever is still running."""
        if not self._thread.is_alive():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Event loop thread did not stop within {}s", timeout)
