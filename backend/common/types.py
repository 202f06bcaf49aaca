"""
Pydantic records shared by the simulator, the route providers and the API.

Field names are snake_case in Python and camelCase on the wire, so the map
client keeps receiving ``routeIndex``, ``lastUpdated`` and friends.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class Coordinate(BaseModel):
    """A (latitude, longitude) pair in decimal degrees. Ranges are not enforced."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class BusRoute(BaseModel):
    """Catalog entry describing where a bus line starts and ends."""

    id: str
    name: str
    start_point: Optional[str] = None
    end_point: Optional[str] = None
    start_coordinates: Optional[Coordinate] = None
    end_coordinates: Optional[Coordinate] = None
    stops: int = 0
    color: str = "#3498db"

    @property
    def has_endpoints(self) -> bool:
        return self.start_coordinates is not None and self.end_coordinates is not None


class RouteResult(BaseModel):
    """Waypoints returned by a route provider. Accepts ``distanceKm``-style keys too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    waypoints: List[Coordinate]
    distance_km: float = 0.0
    duration_min: float = 0.0
    start_address: Optional[str] = None
    end_address: Optional[str] = None


def finite_coordinate(value: Any) -> Coordinate | None:
    """Coerce a Coordinate or mapping to a Coordinate; None if malformed or not finite."""
    if value is None:
        return None
    if isinstance(value, Coordinate):
        latitude, longitude = value.latitude, value.longitude
    elif isinstance(value, Mapping):
        try:
            latitude = float(value["latitude"])
            longitude = float(value["longitude"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed location: %r", value)
            return None
    else:
        logger.warning("Ignoring malformed location: %r", value)
        return None

    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        logger.warning("Ignoring non-finite location: %r", value)
        return None
    return Coordinate(latitude=latitude, longitude=longitude)


class Vehicle(BaseModel):
    """
    A simulated bus.

    Display fields (name, type, speed, catalog metadata) never change after
    generation. ``location``, ``heading``, ``progress``, ``route_index``,
    ``direction`` and ``last_updated`` are only written by the simulator tick.
    ``route`` is assigned once when a simulation starts.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str = ""
    type: str = "bus"
    route_id: Optional[str] = None
    route_name: Optional[str] = None
    stops: int = 0
    color: Optional[str] = None
    location: Optional[Coordinate] = None
    heading: float = 0.0
    speed: float = 0.0  # km/h, display only
    route: List[Coordinate] = Field(default_factory=list)
    route_index: int = 0
    direction: int = 1
    progress: float = 0.0
    route_distance_km: Optional[float] = None
    route_duration_min: Optional[float] = None
    route_source: Optional[str] = None
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("location", mode="before")
    @classmethod
    def normalize_location(cls, value: Any):
        return finite_coordinate(value)

    @property
    def has_route(self) -> bool:
        return len(self.route) >= 2

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
