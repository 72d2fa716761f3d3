from __future__ import annotations

from pathlib import Path
import sys

from PySide6.QtWidgets import QApplication
from loguru import logger

from app.viewmodels.map_vm import MapVM
from app.views.main_window import MainWindow
from core.scope import TaskScope
from infrastructure.delete_service import PhotoFileDeleter
from infrastructure.event_loop import LoopThread
from infrastructure.image_service import ImageService
from infrastructure.location_service import create_location_provider
from infrastructure.logging import get_data_directory, init_logging
from infrastructure.photo_capture import PhotoCaptureService
from infrastructure.settings import JsonSettings
from infrastructure.spot_repository import LocalSpotRepository
from infrastructure.spot_store import SqliteSpotStore

BASE_DIR = Path(__file__).parent


def _storage_path(settings: JsonSettings, key: str, default: Path) -> Path:
    raw = settings.get(key, "")
    if isinstance(raw, str) and raw.strip():
        return Path(raw).expanduser()
    return default


def build_repository(settings: JsonSettings) -> LocalSpotRepository:
    data_dir = get_data_directory()
    store = SqliteSpotStore(_storage_path(settings, "storage.database", data_dir / "spots.db"))
    camera = PhotoCaptureService(_storage_path(settings, "storage.photos_dir", data_dir / "photos"))
    deleter = PhotoFileDeleter(use_trash=bool(settings.get("storage.use_trash", True)))
    return LocalSpotRepository(store, create_location_provider(settings), camera, deleter)


def main() -> int:
    init_logging()
    settings = JsonSettings(BASE_DIR / "settings.json")

    app = QApplication(sys.argv)

    loop_thread = LoopThread()
    loop = loop_thread.start()

    repo = build_repository(settings)
    vm = MapVM(
        repo,
        TaskScope(loop, name="map"),
        spots_stop_timeout=settings.get_float("spots.stop_timeout_s", 5.0),
    )
    vm.start_location_updates()

    win = MainWindow(vm=vm, image_service=ImageService(settings), settings=settings)
    win.show()
    logger.info("CitySpots started")

    try:
        return app.exec()
    finally:
        vm.close()
        loop_thread.stop()


if __name__ == "__main__":
    raise SystemExit(main())
