from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from PIL import Image  # noqa: E402
import pytest  # noqa: E402

from core.models import Location, Spot  # noqa: E402


def make_spot(
    spot_id: int, lat: float = 14.6, lng: float = -90.5, title: str | None = None
) -> Spot:
    return Spot(
        id=spot_id,
        title=title or f"Spot {spot_id}",
        latitude=lat,
        longitude=lng,
        image_uri=f"/photos/SPOT_{spot_id}.jpg",
        created_at=datetime(2024, 1, 1, 12, 0, 0),
    )


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run a few loop iterations."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeSpotRepository:
    """In-memory `SpotRepository` driven by the test."""

    def __init__(self) -> None:
        self.spot_emissions: asyncio.Queue = asyncio.Queue()
        self.active_spot_collectors = 0
        self.spot_subscriptions = 0

        self.location: Location | None = Location(14.6349, -90.5069)
        self.location_error: Exception | None = None
        self.location_gate: asyncio.Event | None = None
        self.location_updates: list[Location] = []

        self.create_result = None
        self.create_error: Exception | None = None
        self.create_gate: asyncio.Event | None = None
        self.create_calls: list = []

        self.delete_error: Exception | None = None
        self.delete_calls: list[int] = []

    async def get_all_spots(self):
        self.spot_subscriptions += 1
        self.active_spot_collectors += 1
        try:
            while True:
                yield await self.spot_emissions.get()
        finally:
            self.active_spot_collectors -= 1

    async def get_current_location(self):
        if self.location_gate is not None:
            await self.location_gate.wait()
        if self.location_error is not None:
            raise self.location_error
        return self.location

    async def get_location_updates(self):
        for location in self.location_updates:
            yield location
            await asyncio.sleep(0)
        await asyncio.Event().wait()

    async def create_spot(self, request):
        self.create_calls.append(request)
        if self.create_gate is not None:
            await self.create_gate.wait()
        if self.create_error is not None:
            raise self.create_error
        return self.create_result

    async def delete_spot(self, spot_id: int) -> None:
        self.delete_calls.append(spot_id)
        if self.delete_error is not None:
            raise self.delete_error


@pytest.fixture
def sample_image(tmp_path: Path) -> Path:
    path = tmp_path / "source.png"
    Image.new("RGB", (64, 48), (30, 120, 200)).save(path)
    return path
