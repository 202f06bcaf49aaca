# geo_utils.py
import math
import random
from typing import Sequence

from common.types import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)

    h = math.sin(dphi/2)**2 + math.cos(phi1)*math.cos(phi2)*math.sin(dlambda/2)**2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1-h))


def bearing_deg(a: Coordinate, b: Coordinate) -> float:
    """Forward azimuth from a to b, 0 = north, clockwise. Coincident points give 0."""
    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    dlambda = math.radians(b.longitude - a.longitude)

    y = math.sin(dlambda) * math.cos(phi2)
    x = math.cos(phi1)*math.sin(phi2) - math.sin(phi1)*math.cos(phi2)*math.cos(dlambda)
    brng = math.degrees(math.atan2(y, x))
    return (brng + 360) % 360


def interpolate(a: Coordinate, b: Coordinate, fraction: float) -> Coordinate:
    # planar lerp, fine for the short hops between waypoints
    return Coordinate(
        latitude=a.latitude + (b.latitude - a.latitude) * fraction,
        longitude=a.longitude + (b.longitude - a.longitude) * fraction,
    )


def path_length_km(points: Sequence[Coordinate]) -> float:
    return sum(haversine_km(p, q) for p, q in zip(points, points[1:]))


def random_point_within_radius(
    center: Coordinate,
    radius_km: float,
    rng: random.Random | None = None,
) -> Coordinate:
    """
    Uniform-area sample inside a disc around center.

    Uses a local planar approximation, so it is only meaningful for radii of
    a few kilometers. Pass a seeded ``random.Random`` for reproducible output.
    """
    rng = rng or random
    radius_rad = radius_km / EARTH_RADIUS_KM

    w = radius_rad * math.sqrt(rng.random())
    t = 2 * math.pi * rng.random()
    x = w * math.cos(t)
    y = w * math.sin(t)

    return Coordinate(
        latitude=center.latitude + math.degrees(y),
        longitude=center.longitude + math.degrees(x) / math.cos(math.radians(center.latitude)),
    )
