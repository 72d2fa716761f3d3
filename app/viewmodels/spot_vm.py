"""Lightweight view model wrapper around `Spot`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from core.models import LatLng, Spot


@dataclass
class SpotVM:
    """Expose display-ready properties for the marker and detail card."""

    spot: Spot

    @property
    def title(self) -> str:
        return self.spot.title

    @property
    def position(self) -> LatLng:
        """Marker position."""
        return LatLng(self.spot.latitude, self.spot.longitude)

    @property
    def coordinates_text(self) -> str:
        """Coordinates with 4 decimals, e.g. "📍 14.6349, -90.5069"."""
        return f"📍 {self.spot.latitude:.4f}, {self.spot.longitude:.4f}"

    @property
    def image_path(self) -> str:
        """Local filesystem path of the photo (accepts file:// URIs)."""
        uri = self.spot.image_uri or ""
        if uri.startswith("file://"):
            return uri[len("file://") :]
        return uri

    @property
    def file_name(self) -> str:
        return Path(self.image_path).name

    @property
    def marker_key(self) -> str:
        return str(self.spot.id)
