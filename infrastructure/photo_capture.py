"""Photo capture for new spots.

The desktop "camera" takes its frame from an existing image file: the
source is decoded with Pillow, EXIF orientation is applied and the result
is written as JPEG into the photos directory. Failures are classified
into `CameraCaptureError` variants and raised as `PhotoCaptureError`.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError

from core.errors import PhotoCaptureError
from core.models import (
    CameraClosed,
    CaptureRequest,
    HardwareError,
    StorageError,
    UnknownCaptureError,
)

JPEG_QUALITY = 90


def _photo_name(now: datetime) -> str:
    return f"SPOT_{now.strftime('%Y%m%d_%H%M%S')}.jpg"


def _unique_path(directory: Path, name: str) -> Path:
    """Return `directory/name`, adding a counter suffix if it already exists."""
    candidate = directory / name
    stem, suffix = candidate.stem, candidate.suffix
    n = 1
    while candidate.exists():
        candidate = directory / f"{stem}_{n}{suffix}"
        n += 1
    return candidate


class PhotoCaptureService:
    """Stores the photo for a capture request under `photos_dir`."""

    def __init__(self, photos_dir: str | Path, quality: int = JPEG_QUALITY) -> None:
        self._dir = Path(photos_dir)
        self._quality = int(quality)

    @property
    def photos_dir(self) -> Path:
        return self._dir

    def _read(self, source: Path) -> Image.Image:
        if not source.is_file():
            raise PhotoCaptureError(CameraClosed(f"Fuente no disponible: {source}"))
        try:
            with Image.open(source) as img:
                img.load()
                frame = ImageOps.exif_transpose(img)
                if frame.mode not in ("RGB", "L"):
                    frame = frame.convert("RGB")
                return frame.copy()
        except (UnidentifiedImageError, Image.DecompressionBombError) as ex:
            raise PhotoCaptureError(HardwareError(str(ex))) from ex
        except OSError as ex:
            raise PhotoCaptureError(HardwareError(str(ex))) from ex

    def _write(self, frame: Image.Image, now: datetime) -> Path:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            target = _unique_path(self._dir, _photo_name(now))
            frame.save(target, format="JPEG", quality=self._quality)
        except OSError as ex:
            raise PhotoCaptureError(StorageError(str(ex))) from ex
        return target

    def capture(self, request: CaptureRequest) -> str:
        """Store the photo for `request` and return the written path."""
        source = Path(request.source_path or "")
        try:
            frame = self._read(source)
            target = self._write(frame, datetime.now())
        except PhotoCaptureError:
            raise
        except Exception as ex:
            raise PhotoCaptureError(UnknownCaptureError(str(ex))) from ex
        logger.info("Photo captured: {} -> {}", source, target)
        return str(target)
