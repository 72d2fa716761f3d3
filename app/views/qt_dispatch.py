from __future__ import annotations

from collections.abc import Callable
from typing import Any

from PySide6.QtCore import QObject, Qt, Signal, Slot
from loguru import logger


class QtDispatcher(QObject):
    """Runs callbacks on the thread that owns this object (the GUI thread).

    View-model fields are written on the asyncio thread; emitting through a
    queued connection hands each callback over to the Qt event loop.
    """

    _invoke = Signal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._invoke.connect(self._run, Qt.QueuedConnection)

    def __call__(self, callback: Callable[[], Any]) -> None:
        self._invoke.emit(callback)

    @Slot(object)
    def _run(self, callback: Callable[[], Any]) -> None:
        try:
            callback()
        except Exception as ex:
            logger.exception("UI callback failed: {}", ex)
