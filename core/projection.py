"""Web-Mercator helpers for placing spots on the map surface.

World coordinates are normalized to the unit square: (0, 0) is the
north-west corner at 180°W / ~85.05°N, (1, 1) the south-east corner.
"""

from __future__ import annotations

import math

MAX_MERCATOR_LAT = 85.05112878


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def latlng_to_world(latitude: float, longitude: float) -> tuple[float, float]:
    lat = clamp(latitude, -MAX_MERCATOR_LAT, MAX_MERCATOR_LAT)
    x = (longitude + 180.0) / 360.0
    sin_lat = math.sin(math.radians(lat))
    y = 0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)
    return x, y


def world_to_latlng(x: float, y: float) -> tuple[float, float]:
    longitude = x * 360.0 - 180.0
    n = math.pi - 2.0 * math.pi * y
    latitude = math.degrees(math.atan(math.sinh(n)))
    return latitude, longitude


def world_size_px(zoom: float, tile_size: int = 256) -> float:
    """Edge length of the whole world in pixels at `zoom`."""
    return tile_size * math.pow(2.0, zoom)


def grid_step(zoom: float, target_px: float, tile_size: int = 256) -> float:
    """Power-of-two world step whose on-screen size is closest to `target_px`."""
    size = world_size_px(zoom, tile_size)
    k = round(math.log2(size / max(1.0, target_px)))
    return math.pow(2.0, -max(0, k))
