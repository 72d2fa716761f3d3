"""MenuController: Manages menu creation and action connections."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QMainWindow, QMenuBar


class MenuController:
    """Creates the main window menus and wires them to handlers."""

    def __init__(self, main_window: QMainWindow) -> None:
        self.window = main_window
        self.actions: dict[str, QAction] = {}

    def setup_menus(self) -> dict[str, QAction]:
        """Create all menus and return action references."""
        menubar = QMenuBar(self.window)

        spot_menu = menubar.addMenu("Spot")
        self.actions["new_spot"] = spot_menu.addAction("Nuevo Spot…")
        self.actions["new_spot"].setShortcut(QKeySequence.New)
        spot_menu.addSeparator()
        self.actions["exit"] = spot_menu.addAction("Salir")

        log_menu = menubar.addMenu("Log")
        self.actions["open_log_directory"] = log_menu.addAction("Abrir carpeta de logs")

        self.window.setMenuBar(menubar)
        return self.actions

    def connect_actions(self, handlers: dict[str, Callable]) -> None:
        """Connect menu actions to their handler callables by name."""
        for name, action in self.actions.items():
            handler = handlers.get(name)
            if handler is not None:
                action.triggered.connect(handler)
            elif name == "exit":
                action.triggered.connect(self.window.close)

    def get_action(self, name: str) -> QAction | None:
        return self.actions.get(name)
