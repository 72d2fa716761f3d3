"""Main window hosting the map screen.

Owns navigation to the capture screen and the screen teardown on close.
"""

from __future__ import annotations

from typing import Any

from PySide6.QtWidgets import QMainWindow, QMessageBox
from loguru import logger

from app.views.components.menu_controller import MenuController
from app.views.dialogs.capture_dialog import CaptureDialog
from app.views.map_screen import MapScreen
from app.views.qt_dispatch import QtDispatcher
from infrastructure.logging import open_log_directory


class MainWindow(QMainWindow):
    """Top-level window: menus, status bar and the map screen."""

    def __init__(
        self,
        vm: Any,
        image_service: Any | None = None,
        settings: Any | None = None,
    ) -> None:
        """Initialize MainWindow.

        Args:
            vm: Map view-model
            image_service: Image service for spot photos
            settings: Settings instance for configuration
        """
        super().__init__()
        self._vm = vm
        self._settings = settings
        self._dispatch = QtDispatcher(self)

        self.map_screen = MapScreen(
            vm,
            dispatch=self._dispatch,
            on_navigate_to_capture=self.navigate_to_capture,
            image_service=image_service,
            settings=settings,
            parent=self,
        )
        self.setCentralWidget(self.map_screen)

        self.menu_controller = MenuController(self)
        self.menu_controller.setup_menus()
        self.menu_controller.connect_actions(
            {
                "new_spot": self.navigate_to_capture,
                "open_log_directory": self._open_log_directory,
                "exit": self.close,
            }
        )

        self.setWindowTitle("City Spots")
        self.resize(1024, 720)
        self.statusBar().showMessage("Listo", 3000)

    def navigate_to_capture(self) -> None:
        """Open the capture screen."""
        dlg = CaptureDialog(self._vm, self._dispatch, self)
        dlg.accepted.connect(lambda: self.statusBar().showMessage("Spot guardado", 3000))
        dlg.open()

    def _open_log_directory(self) -> None:
        if not open_log_directory():
            QMessageBox.warning(self, "Log", "No se pudo abrir la carpeta de logs.")

    def closeEvent(self, event) -> None:
        """Tear down the map screen and cancel its tasks."""
        try:
            self.map_screen.teardown()
            self._vm.stop_location_updates()
            self._vm.close()
            logger.info("Map screen closed")
        except Exception as ex:
            logger.error("Close event handler failed: {}", ex)
        event.accept()
