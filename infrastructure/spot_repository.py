"""Local implementation of `SpotRepository`.

Composes the sqlite spot store, a location provider, the photo capture
service and the photo deleter. The spot list is exposed as an async
stream that re-emits after every mutation made through this repository.

Photo encoding and file removal run in worker threads so the event loop
keeps serving other tasks; sqlite calls stay on the loop thread, which
owns the store connection.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from datetime import datetime

from loguru import logger

from core.errors import PhotoCaptureError
from core.models import (
    CaptureRequest,
    CreateSpotResult,
    InvalidCoordinates,
    Location,
    NoLocation,
    PhotoCaptureFailed,
    Spot,
    Success,
    is_valid_coordinate,
)
from core.services.interfaces import LocationProvider, PhotoCapture, PhotoDeleter
from infrastructure.spot_store import SqliteSpotStore


def spot_title(now: datetime) -> str:
    """Default title of a freshly captured spot."""
    return f"Spot {now.strftime('%d/%m/%Y %H:%M')}"


class LocalSpotRepository:
    """Spot data access backed by sqlite and local files."""

    def __init__(
        self,
        store: SqliteSpotStore,
        location: LocationProvider,
        camera: PhotoCapture,
        deleter: PhotoDeleter,
    ) -> None:
        self._store = store
        self._location = location
        self._camera = camera
        self._deleter = deleter
        self._listeners: set[asyncio.Queue] = set()

    # Spot list

    async def get_all_spots(self) -> AsyncIterator[list[Spot]]:
        changed: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._listeners.add(changed)
        try:
            while True:
                yield self._store.list_spots()
                await changed.get()
        finally:
            self._listeners.discard(changed)

    def _notify_changed(self) -> None:
        for queue in list(self._listeners):
            # Pending notifications are conflated into one
            if queue.empty():
                queue.put_nowait(None)

    # Location

    async def get_current_location(self) -> Location | None:
        return await self._location.current_location()

    def get_location_updates(self) -> AsyncIterator[Location]:
        return self._location.updates()

    # Mutations

    async def create_spot(self, request: CaptureRequest) -> CreateSpotResult:
        location = await self._location.current_location()
        if location is None:
            return NoLocation()
        if not is_valid_coordinate(location.latitude, location.longitude):
            return InvalidCoordinates(
                f"Coordenadas inválidas: lat={location.latitude}, lng={location.longitude}"
            )

        try:
            image_uri = await asyncio.to_thread(self._camera.capture, request)
        except PhotoCaptureError as ex:
            logger.warning("Photo capture failed: {}", ex)
            return PhotoCaptureFailed(ex.error)

        now = datetime.now()
        try:
            spot = self._store.insert_spot(
                spot_title(now), location.latitude, location.longitude, image_uri, now
            )
        except Exception:
            # Do not leave an orphan photo behind
            await self._discard_photo(image_uri)
            raise
        self._notify_changed()
        logger.info(
            "Spot stored: id={} at {:.5f}, {:.5f}", spot.id, spot.latitude, spot.longitude
        )
        return Success(spot)

    async def delete_spot(self, spot_id: int) -> None:
        spot = self._store.get_spot(spot_id)
        if spot is None:
            logger.warning("Delete requested for unknown spot {}", spot_id)
            return
        self._store.delete_spot(spot_id)
        self._notify_changed()
        await self._discard_photo(spot.image_uri)

    async def _discard_photo(self, image_uri: str) -> None:
        try:
            await asyncio.to_thread(self._deleter.delete_photo, image_uri)
        except OSError as ex:
            logger.error("Could not remove photo {}: {}", image_uri, ex)
