from __future__ import annotations

from PySide6.QtWidgets import QDialog, QHBoxLayout, QLabel, QPushButton, QVBoxLayout

from core.models import Spot


class DeleteSpotDialog(QDialog):
    """Confirmation prompt before a spot and its photo are deleted."""

    def __init__(self, spot: Spot, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("¿Eliminar Spot?")
        self.spot = spot

        root = QVBoxLayout(self)

        title = QLabel(f"<b>{spot.title}</b>")
        root.addWidget(title)
        root.addWidget(QLabel("Esta acción borrará permanentemente el spot y su foto."))

        btns = QHBoxLayout()
        self.btn_cancel = QPushButton("Cancelar")
        self.btn_ok = QPushButton("Eliminar")
        self.btn_ok.setStyleSheet("color: #b00020; font-weight: bold;")
        btns.addStretch(1)
        btns.addWidget(self.btn_cancel)
        btns.addWidget(self.btn_ok)
        root.addLayout(btns)

        self.btn_ok.clicked.connect(self.accept)
        self.btn_cancel.clicked.connect(self.reject)
