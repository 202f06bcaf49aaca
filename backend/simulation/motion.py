"""Per-tick waypoint following for a single vehicle."""
from __future__ import annotations

import logging
from datetime import datetime

from common.config import EndOfRoutePolicy
from common.types import Vehicle
from geo import bearing_deg, interpolate

logger = logging.getLogger(__name__)

# Accumulated float steps (0.01 * 100) land a hair under 1.0
PROGRESS_EPSILON = 1e-9


def has_valid_route_state(vehicle: Vehicle) -> bool:
    n = len(vehicle.route)
    return n >= 2 and 0 <= vehicle.route_index < n and vehicle.direction in (1, -1)


def advance_vehicle(
    vehicle: Vehicle,
    progress_step: float,
    now: datetime,
    policy: EndOfRoutePolicy = EndOfRoutePolicy.PING_PONG,
) -> bool:
    """
    Move a vehicle one tick along its route, in place.

    Returns False (and leaves the vehicle untouched) when it has no usable
    route, so a single corrupt vehicle cannot break the shared tick.
    """
    if not has_valid_route_state(vehicle):
        return False

    route = vehicle.route
    last = len(route) - 1
    current = route[vehicle.route_index]
    next_index = vehicle.route_index + vehicle.direction

    if not 0 <= next_index <= last:
        if policy is EndOfRoutePolicy.LOOP:
            vehicle.route_index = 0
            vehicle.direction = 1
            current = route[0]
        else:
            vehicle.direction = -vehicle.direction
        next_index = vehicle.route_index + vehicle.direction
        vehicle.progress = 0.0
        logger.debug("%s turned at index %d, direction now %d", vehicle.id, vehicle.route_index, vehicle.direction)

    target = route[next_index]
    bearing = bearing_deg(current, target)
    vehicle.progress += progress_step

    if vehicle.progress >= 1.0 - PROGRESS_EPSILON:
        vehicle.progress = 0.0
        vehicle.route_index = next_index
        vehicle.location = target
        _handle_route_end(vehicle, policy)
    else:
        vehicle.location = interpolate(current, target, vehicle.progress)

    vehicle.heading = bearing
    vehicle.last_updated = now
    return True


def _handle_route_end(vehicle: Vehicle, policy: EndOfRoutePolicy) -> None:
    last = len(vehicle.route) - 1
    following = vehicle.route_index + vehicle.direction
    if 0 <= following <= last:
        return

    if policy is EndOfRoutePolicy.LOOP:
        # stay on the last waypoint for this tick; the next tick restarts at route[0]
        logger.debug("%s reached the end of its route, restarting next tick", vehicle.id)
        return

    vehicle.direction = -vehicle.direction
    logger.debug(
        "%s changed direction to %s",
        vehicle.id,
        "forward" if vehicle.direction == 1 else "backward",
    )
