from __future__ import annotations

from typing import Any

from PySide6.QtCore import QObject, QRunnable, QThreadPool
from loguru import logger


class _ImageTask(QRunnable):
    """QRunnable for background spot image loading.

    Emits `receiver.imageLoaded(token, path, image)` upon completion when a
    receiver is given; prefetch tasks run without one.
    """

    def __init__(
        self, *, path: str, side: int, service: Any, receiver: QObject | None, token: str
    ) -> None:
        super().__init__()
        self._path = path
        self._side = side
        self._service = service
        self._receiver = receiver
        self._token = token

    def run(self) -> None:  # type: ignore[override]
        try:
            img = self._service.get_thumbnail(self._path, self._side)
        except Exception as ex:  # pragma: no cover - GUI background task
            logger.error("Image task failed for {}: {}", self._path, ex)
            img = None
        if self._receiver is None:
            return
        try:
            signal = self._receiver.imageLoaded  # type: ignore[attr-defined]
            signal.emit(self._token, self._path, img)
        except RuntimeError:  # pragma: no cover - receiver already destroyed
            pass


class ImageTaskRunner:
    """Dispatches spot image loads to the global thread pool.

    Token format: "card|{path}|{side}".
    """

    def __init__(self, *, service: Any, receiver: QObject, side: int) -> None:
        self._service = service
        self._receiver = receiver
        self._side = int(side)
        self._pool = QThreadPool.globalInstance()

    def request_card_image(self, path: str) -> str:
        """Load the detail-card image for `path`. Returns the token string."""
        token = f"card|{path}|{self._side}"
        if self._service is None or not path:
            return token
        self._pool.start(
            _ImageTask(
                path=path,
                side=self._side,
                service=self._service,
                receiver=self._receiver,
                token=token,
            )
        )
        return token

    def prefetch(self, path: str) -> None:
        """Fire-and-forget cache warm-up for `path`."""
        if self._service is None or not path:
            return
        self._pool.start(
            _ImageTask(
                path=path, side=self._side, service=self._service, receiver=None, token=""
            )
        )
