"""Waypoint-following motion simulator for a bus fleet."""
from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
import random
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterable, Mapping, Sequence, Union

from pydantic import ValidationError

from common.config import EndOfRoutePolicy, find_bus_route
from common.types import BusRoute, Coordinate, RouteResult, Vehicle, finite_coordinate
from geo import random_point_within_radius
from routing import RouteProvider, RouteProviderError, direct_line
from .exceptions import SimulationNotRunningError
from .motion import advance_vehicle

logger = logging.getLogger(__name__)

UpdateListener = Callable[[list[Vehicle]], Union[None, Awaitable[None]]]

FALLBACK_SOURCE = "fallback"
FALLBACK_SPEED_KMH = 30.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_reference(value: Coordinate | Mapping[str, Any] | None) -> Coordinate | None:
    reference = finite_coordinate(value)
    if value is not None and reference is None:
        logger.warning("No usable reference location; random destinations are disabled")
    return reference


class MotionSimulator:
    """
    Owns one fleet and advances it on a fixed cadence.

    At most one simulation runs per instance: ``start()`` always stops the
    previous one first. The timer is a single asyncio task that runs ticks
    back to back, so a slow listener delays the next tick instead of
    overlapping it.
    """

    def __init__(
        self,
        route_provider: RouteProvider,
        catalog: Sequence[BusRoute] | None = None,
        tick_interval_ms: int = 100,
        progress_step: float = 0.01,
        random_radius_km: float = 3.0,
        end_of_route: EndOfRoutePolicy = EndOfRoutePolicy.PING_PONG,
        clock: Callable[[], datetime] | None = None,
        rng: random.Random | None = None,
    ):
        if tick_interval_ms <= 0:
            raise ValueError("tick_interval_ms must be positive")
        if not 0 < progress_step <= 1:
            raise ValueError("progress_step must be in (0, 1]")

        self._route_provider = route_provider
        self._catalog: list[BusRoute] = list(catalog or [])
        self._tick_interval_ms = tick_interval_ms
        self._progress_step = progress_step
        self._random_radius_km = random_radius_km
        self._end_of_route = end_of_route
        self._clock = clock or _utc_now
        self._rng = rng or random.Random()

        self._vehicles: list[Vehicle] = []
        self._on_update: UpdateListener | None = None
        self._task: asyncio.Task | None = None
        self._running = False
        self._ticking = False
        self._generation = 0
        self._tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def tick_interval_seconds(self) -> float:
        return self._tick_interval_ms / 1000

    # ---------- Lifecycle ----------

    async def start(
        self,
        vehicles: Iterable[Vehicle | Mapping[str, Any]],
        reference_location: Coordinate | Mapping[str, Any] | None,
        on_update: UpdateListener | None = None,
    ) -> list[Vehicle]:
        """
        Resolve a route for every vehicle, then start ticking.

        Route lookups run concurrently and all vehicles start moving on the
        same tick. Returns a snapshot of the fleet before the first tick.
        """
        records = list(vehicles)
        if not records:
            raise ValueError("start() requires at least one vehicle")

        self.stop()
        generation = self._generation
        reference = _coerce_reference(reference_location)

        prepared = [v for v in (self._prepare(record) for record in records) if v is not None]
        resolved = await asyncio.gather(
            *(self._resolve_route(vehicle, reference) for vehicle in prepared)
        )

        if generation != self._generation:
            # another start() or stop() won the race while routes were resolving
            logger.info("Discarding superseded simulation start (%d vehicles)", len(resolved))
            return [v.model_copy(deep=True) for v in resolved]

        self._vehicles = list(resolved)
        self._on_update = on_update
        self._tick_count = 0
        self._running = True
        self._task = asyncio.create_task(self._run(generation))

        moving = sum(1 for v in self._vehicles if v.has_route)
        logger.info(
            "Simulation started: %d vehicles (%d with routes), tick every %d ms",
            len(self._vehicles),
            moving,
            self._tick_interval_ms,
        )
        return self.get_snapshot()

    def stop(self) -> None:
        """Cancel the timer and drop all vehicle state. Safe to call repeatedly."""
        self._generation += 1
        task, self._task = self._task, None
        # An in-flight tick is allowed to finish; the loop exits right after it.
        if task is not None and not task.done() and not self._ticking:
            task.cancel()

        was_running = self._running
        self._running = False
        self._vehicles = []
        self._on_update = None
        if was_running:
            logger.info("Simulation stopped after %d ticks", self._tick_count)

    async def shutdown(self) -> None:
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def get_snapshot(self) -> list[Vehicle]:
        return [v.model_copy(deep=True) for v in self._vehicles]

    def to_dict(self) -> dict:
        return {
            "running": self._running,
            "vehicle_count": len(self._vehicles),
            "tick_count": self._tick_count,
            "tick_interval_ms": self._tick_interval_ms,
            "progress_step": self._progress_step,
            "end_of_route": self._end_of_route.value,
            "route_provider": self._route_provider.name,
        }

    # ---------- Ticking ----------

    async def tick(self) -> list[Vehicle]:
        """Advance every vehicle one step and notify the listener once."""
        if not self._running:
            raise SimulationNotRunningError("tick() called without a running simulation")
        if self._ticking:
            logger.warning("Skipping overlapping tick")
            return self.get_snapshot()

        self._ticking = True
        try:
            now = self._clock()
            for vehicle in self._vehicles:
                advance_vehicle(vehicle, self._progress_step, now, self._end_of_route)
            self._tick_count += 1

            snapshot = self.get_snapshot()
            if self._on_update is not None:
                result = self._on_update(snapshot)
                if inspect.isawaitable(result):
                    await result
            return snapshot
        finally:
            self._ticking = False

    async def _run(self, generation: int) -> None:
        loop = asyncio.get_running_loop()
        interval = self.tick_interval_seconds
        next_tick_at = loop.time() + interval

        while self._running and generation == self._generation:
            await asyncio.sleep(max(0.0, next_tick_at - loop.time()))
            if not self._running or generation != self._generation:
                break
            try:
                await self.tick()
            except SimulationNotRunningError:
                break
            except Exception:
                logger.exception("Vehicle update listener failed")
            # never try to catch up on missed ticks after a slow listener
            next_tick_at = max(next_tick_at + interval, loop.time())

    # ---------- Route resolution ----------

    def _prepare(self, record: Vehicle | Mapping[str, Any]) -> Vehicle | None:
        try:
            if isinstance(record, Vehicle):
                vehicle = record.model_copy(deep=True)
            else:
                vehicle = Vehicle.model_validate(record)
        except ValidationError as exc:
            logger.warning("Skipping invalid vehicle record: %s", exc.errors()[:1])
            return None

        # instances may have been mutated after validation
        vehicle.location = finite_coordinate(vehicle.location)
        vehicle.route = []
        vehicle.route_index = 0
        vehicle.direction = 1
        vehicle.progress = 0.0
        vehicle.route_distance_km = None
        vehicle.route_duration_min = None
        vehicle.route_source = None
        return vehicle

    def _endpoints(
        self, vehicle: Vehicle, reference: Coordinate | None
    ) -> tuple[Coordinate | None, Coordinate | None]:
        bus_route = find_bus_route(self._catalog, vehicle.route_id)
        if bus_route is not None and bus_route.has_endpoints:
            return bus_route.start_coordinates, bus_route.end_coordinates

        destination = None
        if reference is not None:
            destination = random_point_within_radius(reference, self._random_radius_km, self._rng)
        return vehicle.location, destination

    async def _resolve_route(self, vehicle: Vehicle, reference: Coordinate | None) -> Vehicle:
        if vehicle.location is None:
            logger.warning("%s has no valid location; it will not move", vehicle.id)
            return vehicle

        origin, destination = self._endpoints(vehicle, reference)
        if origin is None or destination is None:
            logger.warning("%s has no usable route endpoints; it will stay in place", vehicle.id)
            return vehicle

        result: RouteResult | None = None
        try:
            raw = await self._route_provider.resolve_route(origin, destination)
            if raw is not None and not isinstance(raw, RouteResult):
                raw = RouteResult.model_validate(raw)
            result = raw
        except RouteProviderError as exc:
            logger.warning("Route lookup failed for %s: %s", vehicle.id, exc)
        except ValidationError as exc:
            logger.warning("Malformed route for %s: %s", vehicle.id, exc.errors()[:1])
        except Exception:
            logger.exception("Unexpected route provider failure for %s", vehicle.id)

        source = self._route_provider.name
        if result is None or len(result.waypoints) < 2:
            logger.warning("Falling back to a direct line for %s", vehicle.id)
            result = direct_line(origin, destination, vehicle.speed or FALLBACK_SPEED_KMH)
            source = FALLBACK_SOURCE

        vehicle.route = list(result.waypoints)
        vehicle.route_distance_km = result.distance_km
        vehicle.route_duration_min = result.duration_min
        vehicle.route_source = source
        logger.debug("%s route has %d waypoints (%s)", vehicle.id, len(vehicle.route), source)
        return vehicle
