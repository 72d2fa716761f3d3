from __future__ import annotations

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import QLabel, QWidget

from app.views.constants import SNACKBAR_TIMEOUT_MS


class Snackbar(QLabel):
    """Transient one-line message shown at the bottom of the map."""

    def __init__(
        self, parent: QWidget | None = None, timeout_ms: int = SNACKBAR_TIMEOUT_MS
    ) -> None:
        super().__init__(parent)
        self._timeout_ms = int(timeout_ms)
        self.setWordWrap(True)
        self.setAlignment(Qt.AlignLeft | Qt.AlignVCenter)
        self.setStyleSheet(
            "background: rgba(50, 50, 50, 230); color: white;"
            " padding: 10px 14px; border-radius: 6px;"
        )
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self.hide)
        self.hide()

    def show_message(self, message: str) -> None:
        self.setText(message)
        self.adjustSize()
        self.show()
        self.raise_()
        self._timer.start(self._timeout_ms)
