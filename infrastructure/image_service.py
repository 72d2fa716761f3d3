"""Spot photo loading and in-memory thumbnail cache.

Decoding uses Qt's `QImageReader` first and Pillow as a fallback for
formats Qt cannot read. Safe to call from worker threads.
"""

from __future__ import annotations

from collections import OrderedDict
import hashlib
import os
import threading
from typing import Any

from PySide6.QtCore import QSize, Qt
from PySide6.QtGui import QImage, QImageReader
from loguru import logger
from PIL import Image, ImageOps

DEFAULT_MEM_CACHE = 256


def _compute_cache_key(path: str, size_key: int) -> str:
    """Compute a stable cache key from path, mtime, size, and requested side."""
    try:
        st = os.stat(path)
        sig = f"{path}|{int(st.st_mtime_ns)}|{int(st.st_size)}|{int(size_key)}".encode(
            "utf-8", errors="ignore"
        )
    except OSError:
        sig = f"{path}|0|0|{int(size_key)}".encode("utf-8", errors="ignore")
    return hashlib.sha1(sig).hexdigest()


def _bounded_size(width: int, height: int, side: int) -> QSize:
    """Scale (width, height) so the longer edge is at most `side`."""
    if width >= height:
        nw = min(side, width)
        nh = int(height * (nw / max(1, width)))
    else:
        nh = min(side, height)
        nw = int(width * (nh / max(1, height)))
    return QSize(max(1, nw), max(1, nh))


class _LRUCache:
    def __init__(self, capacity: int) -> None:
        self._cap = max(1, int(capacity or 1))
        self._data: OrderedDict[str, QImage] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> QImage | None:
        """Return cached QImage for key, moving it to the MRU position."""
        with self._lock:
            img = self._data.get(key)
            if img is None:
                return None
            self._data.move_to_end(key)
            return img

    def put(self, key: str, image: QImage) -> None:
        """Insert or update `key` with `image`, evicting LRU when over capacity."""
        with self._lock:
            self._data[key] = image
            self._data.move_to_end(key)
            while len(self._data) > self._cap:
                self._data.popitem(last=False)


class ImageService:
    """Loads spot photos as bounded QImages with a memory cache."""

    def __init__(self, settings: Any | None = None) -> None:
        cap = DEFAULT_MEM_CACHE
        if settings is not None:
            try:
                cap = int(settings.get("thumbnail_mem_cache", DEFAULT_MEM_CACHE) or cap)
            except (ValueError, TypeError):
                cap = DEFAULT_MEM_CACHE
        self._cache = _LRUCache(cap)

    def get_thumbnail(self, path: str, side: int) -> QImage | None:
        """Return the photo at `path` scaled to fit `side`, or None if unreadable."""
        key = _compute_cache_key(path, side)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        img = self._load_via_qt(path, side)
        if img is None:
            img = self._load_via_pillow(path, side)
        if img is None:
            logger.debug("Image unreadable: {}", path)
            return None
        self._cache.put(key, img)
        return img

    def prefetch(self, path: str, side: int) -> None:
        """Warm the cache for `path`; errors are ignored."""
        self.get_thumbnail(path, side)

    def _load_via_qt(self, path: str, side: int) -> QImage | None:
        reader = QImageReader(path)
        reader.setAutoTransform(True)
        size = reader.size()
        if side > 0 and size.isValid() and size.width() > 0 and size.height() > 0:
            reader.setScaledSize(_bounded_size(size.width(), size.height(), side))
        img = reader.read()
        if img is None or img.isNull():
            return None
        if side > 0 and max(img.width(), img.height()) > side:
            img = img.scaled(side, side, Qt.KeepAspectRatio, Qt.SmoothTransformation)
        return img

    def _load_via_pillow(self, path: str, side: int) -> QImage | None:
        try:
            with Image.open(path) as pil_img:
                frame = ImageOps.exif_transpose(pil_img).convert("RGBA")
                if side > 0:
                    frame.thumbnail((side, side))
                data = frame.tobytes("raw", "RGBA")
                qimg = QImage(data, frame.width, frame.height, QImage.Format_RGBA8888)
                # Detach from the Python buffer
                return qimg.copy()
        except (OSError, ValueError) as ex:
            logger.debug("Pillow load failed for {}: {}", path, ex)
            return None
