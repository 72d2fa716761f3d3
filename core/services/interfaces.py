"""Core service interfaces.

These protocols describe the collaborators the map view-model and the
repository depend on. Infrastructure modules provide the concrete
implementations; tests provide in-memory fakes.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol

from core.models import CaptureRequest, CreateSpotResult, Location, Spot


class SpotRepository(Protocol):
    """Data access for spots, the device location and photo capture."""

    def get_all_spots(self) -> AsyncIterator[list[Spot]]:
        """Yield the full spot list now and again after every change."""
        ...

    async def get_current_location(self) -> Location | None:
        """Return a one-shot location reading, or None when unknown."""
        ...

    def get_location_updates(self) -> AsyncIterator[Location]:
        """Yield location readings indefinitely."""
        ...

    async def create_spot(self, request: CaptureRequest) -> CreateSpotResult:
        """Take a photo, tag it with the current location and persist it."""
        ...

    async def delete_spot(self, spot_id: int) -> None:
        """Delete the spot row and its photo."""
        ...


class LocationProvider(Protocol):
    """Source of location readings."""

    async def current_location(self) -> Location | None:
        ...

    def updates(self) -> AsyncIterator[Location]:
        ...


class PhotoCapture(Protocol):
    """Produces the stored photo for a new spot."""

    def capture(self, request: CaptureRequest) -> str:
        """Store the photo and return its path; raise `PhotoCaptureError` on failure."""
        ...


class PhotoDeleter(Protocol):
    """Removes a stored photo."""

    def delete_photo(self, image_uri: str) -> bool:
        ...
