from __future__ import annotations

from typing import Any

from PySide6.QtCore import Qt
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import (
    QDialog,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QProgressBar,
    QPushButton,
    QVBoxLayout,
)
from loguru import logger

from core.models import CaptureRequest

IMAGE_FILTER = "Imágenes (*.jpg *.jpeg *.png *.bmp *.webp *.tif *.tiff)"
PREVIEW_SIDE_PX = 320


class CaptureDialog(QDialog):
    """Capture screen: choose the photo source and create a spot from it.

    Consumes `capture_result` once per attempt: True closes the dialog,
    False keeps it open so the user can retry.
    """

    def __init__(self, vm: Any, dispatch, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Nuevo Spot")
        self._vm = vm
        self._dispatch = dispatch

        root = QVBoxLayout(self)

        self._preview = QLabel("(sin foto)")
        self._preview.setAlignment(Qt.AlignCenter)
        self._preview.setMinimumSize(PREVIEW_SIDE_PX, PREVIEW_SIDE_PX * 3 // 4)
        root.addWidget(self._preview)

        row = QHBoxLayout()
        self._path = QLineEdit()
        self._path.setPlaceholderText("Ruta de la foto…")
        self._path.textChanged.connect(self._on_path_changed)
        browse = QPushButton("Examinar…")
        browse.clicked.connect(self._browse)
        row.addWidget(self._path, 1)
        row.addWidget(browse)
        root.addLayout(row)

        self._progress = QProgressBar()
        self._progress.setRange(0, 0)
        self._progress.setVisible(False)
        root.addWidget(self._progress)

        self._status = QLabel("")
        self._status.setStyleSheet("color: #b00020;")
        root.addWidget(self._status)

        btns = QHBoxLayout()
        self.btn_cancel = QPushButton("Cancelar")
        self.btn_capture = QPushButton("Capturar")
        self.btn_capture.setEnabled(False)
        btns.addStretch(1)
        btns.addWidget(self.btn_cancel)
        btns.addWidget(self.btn_capture)
        root.addLayout(btns)

        self.btn_capture.clicked.connect(self._capture)
        self.btn_cancel.clicked.connect(self.reject)

        self._subscriptions = [
            vm.capture_result.subscribe(self._post(self._on_capture_result), emit_current=False),
            vm.is_loading.subscribe(self._post(self._on_loading)),
        ]
        self._pending = False
        self.finished.connect(self._dispose)

    def _post(self, handler):
        return lambda value: self._dispatch(lambda: handler(value))

    def _browse(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Elegir foto", "", IMAGE_FILTER)
        if path:
            self._path.setText(path)

    def _on_path_changed(self, text: str) -> None:
        self.btn_capture.setEnabled(bool(text.strip()) and not self._pending)
        pm = QPixmap(text.strip()) if text.strip() else QPixmap()
        if pm.isNull():
            self._preview.setPixmap(QPixmap())
            self._preview.setText("(sin foto)")
        else:
            self._preview.setPixmap(
                pm.scaled(
                    PREVIEW_SIDE_PX, PREVIEW_SIDE_PX, Qt.KeepAspectRatio, Qt.SmoothTransformation
                )
            )

    def _capture(self) -> None:
        path = self._path.text().strip()
        if not path:
            return
        self._pending = True
        self._status.setText("")
        self.btn_capture.setEnabled(False)
        logger.info("Capture requested from {}", path)
        self._vm.clear_capture_result()
        self._vm.create_spot(CaptureRequest(source_path=path))

    def _on_loading(self, loading: bool) -> None:
        self._progress.setVisible(bool(loading) and self._pending)

    def _on_capture_result(self, result: bool | None) -> None:
        if result is None or not self._pending:
            return
        self._pending = False
        self._vm.clear_capture_result()
        if result:
            self.accept()
            return
        self._status.setText("No se pudo crear el spot. Inténtalo de nuevo.")
        self.btn_capture.setEnabled(bool(self._path.text().strip()))

    def _dispose(self, *_: Any) -> None:
        for sub in self._subscriptions:
            sub.dispose()
        self._subscriptions = []
        if self._pending:
            # Closed before the outcome arrived; nobody else will consume it
            self._pending = False
            self._vm.clear_capture_result()
