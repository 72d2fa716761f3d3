"""Removal of spot photos from disk.

Photos go to the recycle bin through send2trash by default so an
accidental delete can be undone from the OS; with `use_trash=False` the
file is unlinked directly.
"""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger
from send2trash import send2trash


class PhotoFileDeleter:
    """Deletes the photo file that belongs to a spot."""

    def __init__(self, use_trash: bool = True) -> None:
        self._use_trash = bool(use_trash)

    def delete_photo(self, image_uri: str) -> bool:
        """Remove the photo at `image_uri`.

        Returns True when a file was removed. A missing file is logged and
        reported as False; other OS errors propagate to the caller.
        """
        if not image_uri:
            return False
        path = image_uri[len("file://") :] if image_uri.startswith("file://") else image_uri
        normalized_path = os.path.normpath(path)
        if not os.path.exists(normalized_path):
            logger.warning("Photo already gone: {}", normalized_path)
            return False

        if self._use_trash:
            try:
                send2trash(normalized_path)
            except (UnicodeEncodeError, OSError) as ex:
                logger.warning("send2trash failed for {} ({}), retrying with abspath", path, ex)
                send2trash(os.path.abspath(path))
        else:
            Path(normalized_path).unlink()
        logger.info("Photo deleted: {} (trash={})", normalized_path, self._use_trash)
        return True
