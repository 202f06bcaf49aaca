"""
Vehicle generation.

Builds the initial bus fleet around a reference location, one bus per
catalog route, before any route has been resolved.
"""
from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Sequence

from common.types import BusRoute, Coordinate, Vehicle

START_JITTER_DEG = 0.001  # keeps buses sharing a start point from stacking
AREA_JITTER_DEG = 0.03  # roughly 3 km around the reference location
MIN_SPEED_KMH = 20
MAX_SPEED_KMH = 59


def _jitter(point: Coordinate, span: float, rng: random.Random) -> Coordinate:
    return Coordinate(
        latitude=point.latitude + (rng.random() - 0.5) * span,
        longitude=point.longitude + (rng.random() - 0.5) * span,
    )


def generate_vehicles(
    center: Coordinate,
    count: int = 5,
    catalog: Sequence[BusRoute] | None = None,
    rng: random.Random | None = None,
) -> list[Vehicle]:
    """
    Create ``count`` buses. With a catalog, bus ``i`` runs catalog route ``i``
    and the count is capped at the catalog size.
    """
    rng = rng or random.Random()
    now = datetime.now(timezone.utc)
    catalog = list(catalog or [])
    if catalog:
        count = min(count, len(catalog))

    vehicles: list[Vehicle] = []
    for i in range(count):
        bus_route = catalog[i] if catalog else None

        if bus_route and bus_route.start_coordinates:
            location = _jitter(bus_route.start_coordinates, START_JITTER_DEG, rng)
        else:
            location = _jitter(center, AREA_JITTER_DEG, rng)

        vehicles.append(
            Vehicle(
                id=f"vehicle-{i}",
                name=f"Bus {i + 1}",
                type="bus",
                route_id=bus_route.id if bus_route else None,
                route_name=bus_route.name if bus_route else None,
                stops=bus_route.stops if bus_route else 0,
                color=bus_route.color if bus_route else None,
                speed=rng.randint(MIN_SPEED_KMH, MAX_SPEED_KMH),
                heading=rng.randint(0, 359),
                location=location,
                last_updated=now,
            )
        )
    return vehicles
