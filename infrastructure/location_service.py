"""Location providers.

Desktop machines rarely expose a GPS, so the app ships a static provider
(fixed reading from settings) and a simulated one that random-walks
around a start point.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from datetime import datetime
import math
import random
from typing import Any

from loguru import logger

from core.models import Location

METERS_PER_DEGREE_LAT = 111_320.0


def offset_location(lat: float, lng: float, north_m: float, east_m: float) -> tuple[float, float]:
    """Move (lat, lng) by metric offsets, clamped to valid ranges."""
    new_lat = lat + north_m / METERS_PER_DEGREE_LAT
    cos_lat = max(1e-6, math.cos(math.radians(lat)))
    new_lng = lng + east_m / (METERS_PER_DEGREE_LAT * cos_lat)
    new_lat = max(-90.0, min(90.0, new_lat))
    new_lng = ((new_lng + 180.0) % 360.0) - 180.0
    return new_lat, new_lng


class StaticLocationProvider:
    """Always reports the same reading (or nothing)."""

    def __init__(
        self, latitude: float | None, longitude: float | None, interval_s: float = 5.0
    ) -> None:
        self._lat = latitude
        self._lng = longitude
        self._interval = max(0.01, float(interval_s))

    def _reading(self) -> Location | None:
        if self._lat is None or self._lng is None:
            return None
        return Location(self._lat, self._lng, accuracy_m=0.0, timestamp=datetime.now())

    async def current_location(self) -> Location | None:
        return self._reading()

    async def updates(self) -> AsyncIterator[Location]:
        while True:
            reading = self._reading()
            if reading is not None:
                yield reading
            await asyncio.sleep(self._interval)


class SimulatedLocationProvider:
    """Random walk around a start point, one reading per interval."""

    def __init__(
        self,
        latitude: float,
        longitude: float,
        interval_s: float = 5.0,
        jitter_m: float = 25.0,
        rng: random.Random | None = None,
    ) -> None:
        self._lat = float(latitude)
        self._lng = float(longitude)
        self._interval = max(0.01, float(interval_s))
        self._jitter = max(0.0, float(jitter_m))
        self._rng = rng or random.Random()

    def _step(self) -> Location:
        north = self._rng.uniform(-self._jitter, self._jitter)
        east = self._rng.uniform(-self._jitter, self._jitter)
        self._lat, self._lng = offset_location(self._lat, self._lng, north, east)
        return Location(self._lat, self._lng, accuracy_m=self._jitter, timestamp=datetime.now())

    async def current_location(self) -> Location | None:
        return Location(self._lat, self._lng, accuracy_m=self._jitter, timestamp=datetime.now())

    async def updates(self) -> AsyncIterator[Location]:
        while True:
            await asyncio.sleep(self._interval)
            yield self._step()


def create_location_provider(settings: Any):
    """Build the provider selected by `location.mode` (simulated|static|none)."""
    mode = str(settings.get("location.mode", "simulated")).lower()
    lat = settings.get_float("location.latitude", 14.6349)
    lng = settings.get_float("location.longitude", -90.5069)
    interval = settings.get_float("location.update_interval_s", 5.0)
    if mode == "static":
        provider = StaticLocationProvider(lat, lng, interval)
    elif mode == "none":
        provider = StaticLocationProvider(None, None, interval)
    else:
        if mode != "simulated":
            logger.warning("Unknown location mode '{}', using simulated", mode)
            mode = "simulated"
        provider = SimulatedLocationProvider(
            lat, lng, interval, settings.get_float("location.jitter_m", 25.0)
        )
    logger.info("Location provider: {} ({:.5f}, {:.5f})", mode, lat, lng)
    return provider
