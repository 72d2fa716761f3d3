"""Exception types raised by repository collaborators.

The map view-model converts every one of these (and any other exception)
into a user-facing message; none of them escape the presentation layer.
"""

from __future__ import annotations

from core.models import CameraCaptureError


class CitySpotsError(Exception):
    """Base class for application errors."""


class LocationError(CitySpotsError):
    """The location provider could not produce a reading."""


class PersistenceError(CitySpotsError):
    """The spot store failed to read or write."""


class PhotoCaptureError(CitySpotsError):
    """Taking the photo for a spot failed.

    Attributes:
        error: The classified camera error variant.
    """

    def __init__(self, error: CameraCaptureError) -> None:
        super().__init__(getattr(error, "detail", "") or type(error).__name__)
        self.error = error
