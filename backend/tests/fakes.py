"""Shared test doubles for simulation tests.

Provides FakeRouteProvider (mimics a directions service) so tests can run
without network access or a Google Maps API key, plus small builders for
vehicle records.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Sequence

from common.types import Coordinate, RouteResult, Vehicle
from routing import RouteProvider

FIXED_NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
RIYADH = Coordinate(latitude=24.710616, longitude=46.6855285)


def make_vehicle(vehicle_id: str = "vehicle-0", **overrides) -> Vehicle:
    data = dict(
        id=vehicle_id,
        name="Bus 1",
        speed=30,
        location=Coordinate(latitude=0.0, longitude=0.0),
    )
    data.update(overrides)
    return Vehicle(**data)


class FakeRouteProvider(RouteProvider):
    """Returns canned routes and records every lookup."""

    name = "fake"

    def __init__(
        self,
        waypoints: Sequence[Coordinate] | None = None,
        error: Exception | None = None,
        return_none: bool = False,
        delay: float = 0.0,
        fail_when: Callable[[Coordinate, Coordinate], bool] | None = None,
    ):
        self.waypoints = list(waypoints) if waypoints is not None else None
        self.error = error
        self.return_none = return_none
        self.delay = delay
        self.fail_when = fail_when
        self.calls: list[tuple[Coordinate, Coordinate]] = []

    async def resolve_route(self, origin: Coordinate, destination: Coordinate) -> RouteResult | None:
        self.calls.append((origin, destination))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.fail_when is not None and self.fail_when(origin, destination):
            raise RuntimeError("simulated provider outage")
        if self.return_none:
            return None
        if self.waypoints is not None:
            return RouteResult(waypoints=list(self.waypoints), distance_km=1.0, duration_min=2.0)
        midpoint = Coordinate(
            latitude=(origin.latitude + destination.latitude) / 2,
            longitude=(origin.longitude + destination.longitude) / 2,
        )
        return RouteResult(waypoints=[origin, midpoint, destination], distance_km=1.0, duration_min=2.0)
