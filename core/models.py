"""Core domain models for spots, locations and capture outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class Spot:
    """A persisted record pairing a geolocation with a photo and title."""

    id: int
    title: str
    latitude: float
    longitude: float
    image_uri: str
    created_at: datetime = field(default_factory=datetime.now, compare=False)


@dataclass(frozen=True)
class LatLng:
    """Latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class Location:
    """A single reading from a location provider."""

    latitude: float
    longitude: float
    accuracy_m: float | None = None
    timestamp: datetime | None = None

    def to_latlng(self) -> LatLng:
        return LatLng(self.latitude, self.longitude)


@dataclass(frozen=True)
class CaptureRequest:
    """Handle describing where the photo for a new spot is taken from."""

    source_path: str


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """True when both values are finite and inside WGS84 ranges."""
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        return False
    # NaN fails every comparison
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


# Camera capture errors


@dataclass(frozen=True)
class CameraClosed:
    detail: str = ""


@dataclass(frozen=True)
class HardwareError:
    detail: str = ""


@dataclass(frozen=True)
class StorageError:
    detail: str = ""


@dataclass(frozen=True)
class UnknownCaptureError:
    detail: str = ""


CameraCaptureError = Union[CameraClosed, HardwareError, StorageError, UnknownCaptureError]


# Create spot outcomes


@dataclass(frozen=True)
class Success:
    spot: Spot


@dataclass(frozen=True)
class NoLocation:
    pass


@dataclass(frozen=True)
class InvalidCoordinates:
    message: str


@dataclass(frozen=True)
class PhotoCaptureFailed:
    error: CameraCaptureError


CreateSpotResult = Union[Success, NoLocation, InvalidCoordinates, PhotoCaptureFailed]
