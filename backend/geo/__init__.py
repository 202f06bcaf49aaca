"""Geodesy helpers."""
from .geo_utils import (
    EARTH_RADIUS_KM,
    bearing_deg,
    haversine_km,
    interpolate,
    path_length_km,
    random_point_within_radius,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "bearing_deg",
    "haversine_km",
    "interpolate",
    "path_length_km",
    "random_point_within_radius",
]
