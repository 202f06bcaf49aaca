"""Per-tick waypoint following and end-of-route turns."""
from __future__ import annotations

import math

import pytest

from common.config import EndOfRoutePolicy
from common.types import Coordinate
from geo import bearing_deg
from simulation.motion import advance_vehicle
from tests.fakes import FIXED_NOW, make_vehicle


def _c(lat: float, lon: float) -> Coordinate:
    return Coordinate(latitude=lat, longitude=lon)


def _routed(route, **overrides):
    return make_vehicle(route=route, location=route[0], **overrides)


# ---------- Worked example ----------

class TestThreeWaypointScenario:
    """Route (0,0) -> (0,1) -> (1,1) with a progress step of 0.5."""

    def setup_method(self):
        self.route = [_c(0, 0), _c(0, 1), _c(1, 1)]
        self.vehicle = _routed(self.route)

    def _tick(self):
        assert advance_vehicle(self.vehicle, 0.5, FIXED_NOW)

    def test_tick_1_interpolates_halfway(self):
        self._tick()
        assert self.vehicle.progress == pytest.approx(0.5)
        assert self.vehicle.location.latitude == pytest.approx(0.0)
        assert self.vehicle.location.longitude == pytest.approx(0.5)
        assert self.vehicle.heading == pytest.approx(90.0)

    def test_tick_2_lands_exactly_on_waypoint(self):
        for _ in range(2):
            self._tick()
        assert self.vehicle.progress == 0.0
        assert self.vehicle.route_index == 1
        assert self.vehicle.location == _c(0, 1)
        assert self.vehicle.direction == 1

    def test_tick_3_heads_north(self):
        for _ in range(3):
            self._tick()
        assert self.vehicle.progress == pytest.approx(0.5)
        assert self.vehicle.location.latitude == pytest.approx(0.5)
        assert self.vehicle.location.longitude == pytest.approx(1.0)
        assert self.vehicle.heading == pytest.approx(bearing_deg(_c(0, 1), _c(1, 1)))

    def test_tick_4_reaches_end_and_reverses(self):
        for _ in range(4):
            self._tick()
        assert self.vehicle.route_index == 2
        assert self.vehicle.direction == -1
        assert self.vehicle.location == _c(1, 1)

    def test_tick_5_drives_back_toward_previous_waypoint(self):
        for _ in range(5):
            self._tick()
        assert self.vehicle.location.latitude == pytest.approx(0.5)
        assert self.vehicle.location.longitude == pytest.approx(1.0)
        assert self.vehicle.heading == pytest.approx(180.0)


# ---------- Two-point routes ----------

class TestTwoPointRoute:
    @pytest.mark.parametrize("step", [0.01, 0.1, 0.3, 0.25, 0.7, 1.0])
    def test_arrives_at_end_after_ceil_ticks(self, step):
        p0, p1 = _c(24.715722, 46.672611), _c(24.711389, 46.674444)
        vehicle = _routed([p0, p1])
        for _ in range(math.ceil(1 / step)):
            advance_vehicle(vehicle, step, FIXED_NOW)
        assert vehicle.location.latitude == pytest.approx(p1.latitude)
        assert vehicle.location.longitude == pytest.approx(p1.longitude)
        assert vehicle.direction == -1
        assert vehicle.route_index == 1

    def test_ping_pong_returns_to_start(self):
        p0, p1 = _c(0, 0), _c(0, 1)
        vehicle = _routed([p0, p1])
        for _ in range(8):
            advance_vehicle(vehicle, 0.25, FIXED_NOW)
        assert vehicle.location == p0
        assert vehicle.route_index == 0
        assert vehicle.direction == 1

    def test_loop_policy_shows_last_waypoint_then_restarts(self):
        p0, p1 = _c(0, 0), _c(0, 1)
        vehicle = _routed([p0, p1])
        for _ in range(4):
            advance_vehicle(vehicle, 0.25, FIXED_NOW, EndOfRoutePolicy.LOOP)
        assert vehicle.location == p1
        assert vehicle.route_index == 1
        assert vehicle.direction == 1

        advance_vehicle(vehicle, 0.25, FIXED_NOW, EndOfRoutePolicy.LOOP)
        assert vehicle.route_index == 0
        assert vehicle.direction == 1
        assert vehicle.location.latitude == pytest.approx(0.0)
        assert vehicle.location.longitude == pytest.approx(0.25)
        assert vehicle.heading == pytest.approx(90.0)

    def test_loop_policy_keeps_invariants(self):
        route = [_c(0, 0), _c(0, 1), _c(1, 1)]
        vehicle = _routed(route)
        for _ in range(100):
            advance_vehicle(vehicle, 0.3, FIXED_NOW, EndOfRoutePolicy.LOOP)
            assert 0 <= vehicle.route_index < len(route)
            assert vehicle.direction == 1
            assert 0.0 <= vehicle.progress < 1.0


# ---------- Invariants ----------

class TestInvariants:
    def test_progress_and_index_stay_in_bounds(self):
        route = [_c(0, 0), _c(0, 1), _c(1, 1), _c(1, 2), _c(2, 2)]
        vehicle = _routed(route)
        for _ in range(500):
            advance_vehicle(vehicle, 0.07, FIXED_NOW)
            assert 0.0 <= vehicle.progress < 1.0
            assert 0 <= vehicle.route_index < len(route)
            assert vehicle.direction in (1, -1)
            assert 0.0 <= vehicle.heading < 360.0

    def test_route_is_never_mutated(self):
        route = [_c(0, 0), _c(0, 1), _c(1, 1)]
        vehicle = _routed(list(route))
        for _ in range(50):
            advance_vehicle(vehicle, 0.2, FIXED_NOW)
        assert vehicle.route == route

    def test_stamps_last_updated(self):
        vehicle = _routed([_c(0, 0), _c(0, 1)])
        advance_vehicle(vehicle, 0.1, FIXED_NOW)
        assert vehicle.last_updated == FIXED_NOW


# ---------- Pass-through cases ----------

class TestPassThrough:
    def test_no_route_is_unchanged(self):
        vehicle = make_vehicle(location=_c(5, 5))
        before = vehicle.model_copy(deep=True)
        assert advance_vehicle(vehicle, 0.5, FIXED_NOW) is False
        assert vehicle == before

    def test_single_point_route_is_unchanged(self):
        vehicle = _routed([_c(1, 1)])
        before = vehicle.model_copy(deep=True)
        assert advance_vehicle(vehicle, 0.5, FIXED_NOW) is False
        assert vehicle == before

    def test_out_of_range_index_is_unchanged(self):
        vehicle = _routed([_c(0, 0), _c(0, 1)], route_index=7)
        before = vehicle.model_copy(deep=True)
        assert advance_vehicle(vehicle, 0.5, FIXED_NOW) is False
        assert vehicle == before

    def test_invalid_direction_is_unchanged(self):
        vehicle = _routed([_c(0, 0), _c(0, 1)], direction=0)
        assert advance_vehicle(vehicle, 0.5, FIXED_NOW) is False


class TestBoundaryRecovery:
    def test_forward_at_last_index_turns_around(self):
        route = [_c(0, 0), _c(0, 1), _c(1, 1)]
        vehicle = make_vehicle(route=route, location=route[2], route_index=2, direction=1)
        assert advance_vehicle(vehicle, 0.5, FIXED_NOW)
        assert vehicle.direction == -1
        assert vehicle.location.latitude == pytest.approx(0.5)
        assert vehicle.location.longitude == pytest.approx(1.0)
