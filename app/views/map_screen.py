"""MapScreen: the map with spot markers and its overlays.

Implements `MapScreenView` for `MapScreenController`; all decisions about
selection, deletion and one-shot effects live in the controller.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QDialog, QGridLayout, QProgressBar, QPushButton, QWidget
from loguru import logger

from app.viewmodels.map_screen import USER_LOCATION_ZOOM, MapScreenController
from app.views.constants import (
    CARD_MARGIN_PX,
    DEFAULT_CENTER_LAT,
    DEFAULT_CENTER_LNG,
    DEFAULT_THUMB_SIZE,
    DEFAULT_ZOOM,
    FAB_SIZE_PX,
)
from app.views.dialogs.delete_confirm_dialog import DeleteSpotDialog
from app.views.image_tasks import ImageTaskRunner
from app.views.widgets.snackbar import Snackbar
from app.views.widgets.spot_info_card import SpotInfoCard
from app.views.widgets.spot_map import SpotMapView
from core.models import LatLng, Spot


class MapScreen(QWidget):
    """Map surface plus detail card, progress overlay, snackbar and FAB."""

    # token, path, QImage
    imageLoaded = Signal(str, str, object)

    def __init__(
        self,
        vm: Any,
        dispatch: Callable[[Callable[[], Any]], None],
        on_navigate_to_capture: Callable[[], None],
        image_service: Any | None = None,
        settings: Any | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        thumb_size = DEFAULT_THUMB_SIZE
        center = None
        zoom = DEFAULT_ZOOM
        user_zoom = USER_LOCATION_ZOOM
        if settings is not None:
            thumb_size = int(settings.get("thumbnail_size", thumb_size) or thumb_size)
            center = LatLng(
                settings.get_float("map.default_center.lat", DEFAULT_CENTER_LAT),
                settings.get_float("map.default_center.lng", DEFAULT_CENTER_LNG),
            )
            zoom = settings.get_float("map.default_zoom", zoom)
            user_zoom = settings.get_float("map.user_zoom", user_zoom)

        self._runner = ImageTaskRunner(service=image_service, receiver=self, side=thumb_size)
        self._delete_dialog: DeleteSpotDialog | None = None

        self._setup_ui(center, zoom)

        self.controller = MapScreenController(
            vm,
            self,
            on_navigate_to_capture=on_navigate_to_capture,
            prefetch_image=self._runner.prefetch,
            dispatch=dispatch,
            user_zoom=user_zoom,
        )
        self._connect_signals()

    def _setup_ui(self, center: LatLng | None, zoom: float) -> None:
        grid = QGridLayout(self)
        grid.setContentsMargins(0, 0, 0, 0)

        self.map_view = SpotMapView(self, center=center, zoom=zoom)
        grid.addWidget(self.map_view, 0, 0)

        self.card = SpotInfoCard(self, self._runner)
        grid.addWidget(self.card, 0, 0, Qt.AlignHCenter | Qt.AlignBottom)
        self.card.setContentsMargins(0, 0, 0, CARD_MARGIN_PX)

        self.progress = QProgressBar(self)
        self.progress.setRange(0, 0)
        self.progress.setTextVisible(False)
        self.progress.setFixedWidth(160)
        self.progress.setVisible(False)
        grid.addWidget(self.progress, 0, 0, Qt.AlignCenter)

        self.snackbar = Snackbar(self)
        grid.addWidget(self.snackbar, 0, 0, Qt.AlignLeft | Qt.AlignBottom)

        self.fab = QPushButton("+", self)
        self.fab.setToolTip("Agregar Spot")
        self.fab.setFixedSize(FAB_SIZE_PX, FAB_SIZE_PX)
        self.fab.setStyleSheet(
            f"QPushButton {{ border-radius: {FAB_SIZE_PX // 2}px; background: #6750a4;"
            " color: white; font-size: 24px; font-weight: bold; }"
        )
        grid.addWidget(self.fab, 0, 0, Qt.AlignRight | Qt.AlignBottom)

    def _connect_signals(self) -> None:
        c = self.controller
        self.map_view.spotClicked.connect(c.on_spot_clicked)
        self.map_view.spotLongPressed.connect(c.on_spot_long_pressed)
        self.map_view.mapClicked.connect(c.on_map_clicked)
        self.card.deleteRequested.connect(c.on_card_delete)
        self.fab.clicked.connect(c.navigate_to_capture)
        self.imageLoaded.connect(self.card.on_image_loaded)

    # Lifecycle

    def showEvent(self, event) -> None:  # type: ignore[override]
        super().showEvent(event)
        self.controller.attach()

    def teardown(self) -> None:
        self.controller.detach()

    # MapScreenView

    def render_spots(self, spots: list[Spot]) -> None:
        self.map_view.render_spots(spots)
        logger.debug("Rendered {} marker(s)", len(spots))

    def animate_camera(self, target: LatLng, zoom: float) -> None:
        self.map_view.animate_to(target, zoom)

    def set_loading(self, loading: bool) -> None:
        self.progress.setVisible(bool(loading))
        if loading:
            self.progress.raise_()

    def show_message(self, message: str) -> None:
        self.snackbar.show_message(message)

    def show_spot_card(self, spot: Spot | None) -> None:
        self.card.show_spot(spot)

    def show_delete_prompt(self, spot: Spot | None) -> None:
        if spot is None:
            if self._delete_dialog is not None:
                dlg, self._delete_dialog = self._delete_dialog, None
                dlg.close()
            return
        if self._delete_dialog is not None:
            # A newer long-press replaces the open prompt
            dlg, self._delete_dialog = self._delete_dialog, None
            dlg.close()
        dlg = DeleteSpotDialog(spot, self)
        self._delete_dialog = dlg
        dlg.finished.connect(lambda result, d=dlg: self._on_delete_dialog_finished(d, result))
        dlg.open()

    def _on_delete_dialog_finished(self, dlg: DeleteSpotDialog, result: int) -> None:
        if dlg is not self._delete_dialog:
            return
        self._delete_dialog = None
        if result == QDialog.Accepted:
            self.controller.confirm_delete()
        else:
            self.controller.cancel_delete()
