"""Logging initialization utilities using loguru."""

from __future__ import annotations

import os
from pathlib import Path
import subprocess

from loguru import logger

APP_NAME = "CitySpots"


def get_data_directory() -> Path:
    """Per-user application data directory."""
    if os.name == "nt":
        return Path.home() / "AppData" / "Local" / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


def get_log_directory() -> str:
    """Get the main log directory path."""
    return str(get_data_directory() / "logs")


def init_logging(log_dir: str | None = None) -> None:
    """Initialize rotating file logging under the given directory."""
    if log_dir is None:
        log_dir = get_log_directory()
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        str(log_path / "app_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level="INFO",
    )


def open_directory_in_explorer(dir_path: str) -> bool:
    """Open a directory in the file explorer."""
    try:
        if os.name == "nt":
            os.startfile(dir_path)  # type: ignore[attr-defined]
        else:
            opener = "open" if os.uname().sysname == "Darwin" else "xdg-open"
            subprocess.run([opener, dir_path], check=True)
        return True
    except (OSError, subprocess.CalledProcessError) as ex:
        logger.error("Open directory failed for {}: {}", dir_path, ex)
        return False


def open_log_directory() -> bool:
    """Open the log directory in the file explorer."""
    log_dir = get_log_directory()
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    return open_directory_in_explorer(log_dir)
