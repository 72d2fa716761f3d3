from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont, QPixmap
from PySide6.QtWidgets import QFrame, QLabel, QPushButton, QVBoxLayout, QWidget

from app.viewmodels.spot_vm import SpotVM
from app.views.constants import CARD_IMAGE_HEIGHT_PX, CARD_IMAGE_WIDTH_PX
from app.views.image_tasks import ImageTaskRunner
from core.models import Spot


class SpotInfoCard(QFrame):
    """Detail card for the selected spot: photo, title, coordinates, delete button."""

    deleteRequested = Signal()

    def __init__(self, parent: QWidget | None, task_runner: ImageTaskRunner) -> None:
        super().__init__(parent)
        self._runner = task_runner
        self._token: str | None = None
        self._spot: Spot | None = None

        self.setObjectName("spotInfoCard")
        self.setStyleSheet(
            "#spotInfoCard { background: palette(base); border-radius: 16px;"
            " border: 1px solid palette(mid); }"
        )

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 12, 12, 12)
        root.setAlignment(Qt.AlignHCenter)

        self._image = QLabel("Cargando…")
        self._image.setFixedSize(CARD_IMAGE_WIDTH_PX, CARD_IMAGE_HEIGHT_PX)
        self._image.setAlignment(Qt.AlignCenter)
        root.addWidget(self._image, alignment=Qt.AlignHCenter)

        self._title = QLabel()
        title_font = QFont(self._title.font())
        title_font.setPointSizeF(title_font.pointSizeF() * 1.4)
        title_font.setBold(True)
        self._title.setFont(title_font)
        self._title.setAlignment(Qt.AlignCenter)
        self._title.setWordWrap(True)
        root.addWidget(self._title)

        self._coords = QLabel()
        self._coords.setAlignment(Qt.AlignCenter)
        root.addWidget(self._coords)

        self._delete_btn = QPushButton("Eliminar Spot")
        self._delete_btn.setFlat(True)
        self._delete_btn.setStyleSheet("color: #b00020;")
        self._delete_btn.clicked.connect(self.deleteRequested.emit)
        root.addWidget(self._delete_btn, alignment=Qt.AlignHCenter)

        self.setVisible(False)

    @property
    def spot(self) -> Spot | None:
        return self._spot

    def show_spot(self, spot: Spot | None) -> None:
        """Populate and show the card, or hide it when `spot` is None."""
        self._spot = spot
        if spot is None:
            self._token = None
            self.setVisible(False)
            return
        vm = SpotVM(spot)
        self._title.setText(vm.title)
        self._coords.setText(vm.coordinates_text)
        self._image.setPixmap(QPixmap())
        self._image.setText("Cargando…")
        self._token = self._runner.request_card_image(vm.image_path)
        self.setVisible(True)
        self.raise_()

    def on_image_loaded(self, token: str, path: str, image) -> None:
        if token != self._token:
            return
        if image is None or image.isNull():
            self._image.setText("Imagen no disponible")
            return
        pm = QPixmap.fromImage(image).scaled(
            CARD_IMAGE_WIDTH_PX,
            CARD_IMAGE_HEIGHT_PX,
            Qt.KeepAspectRatioByExpanding,
            Qt.SmoothTransformation,
        )
        # Centre crop to the frame
        x = max(0, (pm.width() - CARD_IMAGE_WIDTH_PX) // 2)
        y = max(0, (pm.height() - CARD_IMAGE_HEIGHT_PX) // 2)
        self._image.setPixmap(pm.copy(x, y, CARD_IMAGE_WIDTH_PX, CARD_IMAGE_HEIGHT_PX))
