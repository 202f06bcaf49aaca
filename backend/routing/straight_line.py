"""Two-point straight line route, used when no directions service is configured."""
from __future__ import annotations

from common.types import Coordinate, RouteResult
from geo import path_length_km
from .base import RouteProvider

DEFAULT_ASSUMED_SPEED_KMH = 30.0


def direct_line(
    origin: Coordinate,
    destination: Coordinate,
    assumed_speed_kmh: float = DEFAULT_ASSUMED_SPEED_KMH,
) -> RouteResult:
    distance_km = path_length_km([origin, destination])
    duration_min = (distance_km / assumed_speed_kmh) * 60 if assumed_speed_kmh > 0 else 0.0
    return RouteResult(
        waypoints=[origin, destination],
        distance_km=distance_km,
        duration_min=duration_min,
    )


class StraightLineProvider(RouteProvider):
    name = "straight_line"

    def __init__(self, assumed_speed_kmh: float = DEFAULT_ASSUMED_SPEED_KMH):
        self._assumed_speed_kmh = assumed_speed_kmh

    async def resolve_route(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        return direct_line(origin, destination, self._assumed_speed_kmh)
