"""Shared test fixtures for backend tests.

Simulators are built with a fake route provider, a seeded RNG and a slow
timer so tests drive ticks by hand. The API client swaps the real route
provider for the fake one and speeds the timer up.
"""
from __future__ import annotations

import random

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient


# ---------- Simulation fixtures ----------

@pytest.fixture()
def fake_provider():
    from tests.fakes import FakeRouteProvider

    return FakeRouteProvider()


@pytest_asyncio.fixture()
async def simulator_factory(fake_provider):
    """Create MotionSimulators with external deps faked.

    The default tick interval is long enough that the timer never fires
    during a test; pass ``tick_interval_ms`` to exercise the real loop.
    All created simulators are shut down on teardown.
    """
    from simulation import MotionSimulator
    from tests.fakes import FIXED_NOW

    created: list[MotionSimulator] = []

    def _factory(**kwargs) -> MotionSimulator:
        defaults = dict(
            route_provider=fake_provider,
            tick_interval_ms=5000,
            progress_step=0.5,
            clock=lambda: FIXED_NOW,
            rng=random.Random(7),
        )
        defaults.update(kwargs)
        sim = MotionSimulator(**defaults)
        created.append(sim)
        return sim

    yield _factory

    for sim in created:
        await sim.shutdown()


@pytest_asyncio.fixture()
async def registry_factory(fake_provider):
    from simulation import MotionSimulator, SimulationRegistry

    created: list[SimulationRegistry] = []

    def _factory(**kwargs) -> SimulationRegistry:
        defaults = dict(
            simulator_factory=lambda: MotionSimulator(route_provider=fake_provider, tick_interval_ms=5000),
            max_sessions=4,
            idle_timeout_seconds=60.0,
            monitor_interval_seconds=0.02,
        )
        defaults.update(kwargs)
        reg = SimulationRegistry(**defaults)
        created.append(reg)
        return reg

    yield _factory

    for reg in created:
        await reg.shutdown()


# ---------- FastAPI test client ----------

@pytest.fixture()
def api_client(monkeypatch, fake_provider):
    """TestClient for the full api.app with the route provider faked."""
    import api

    monkeypatch.setattr(api, "create_route_provider", lambda _settings: fake_provider)
    monkeypatch.setattr(api.settings.simulation, "tick_interval_ms", 20)

    with TestClient(api.app) as c:
        yield c
