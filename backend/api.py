"""FastAPI backend streaming simulated bus positions."""
from __future__ import annotations

import json
import logging
import re
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from starlette.websockets import WebSocketDisconnect

from common.config import BUS_ROUTES, settings
from common.types import Vehicle
from routing import RouteProvider, create_route_provider
from simulation import (
    SESSION_ID_PATTERN,
    MotionSimulator,
    SessionHandle,
    SessionLimitExceededError,
    SessionNotFoundError,
    SessionStartRequest,
    SimulationRegistry,
    generate_vehicles,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Bus Tracker Backend API",
    description="Real-time simulated bus positions over REST and websockets",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.server.cors_origins),
    allow_origin_regex=r"^https?://(10\.\d+\.\d+\.\d+|192\.168\.\d+\.\d+|172\.(1[6-9]|2\d|3[0-1])\.\d+\.\d+)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

SESSION_ID_RE = re.compile(SESSION_ID_PATTERN)

route_provider: RouteProvider | None = None
registry: SimulationRegistry | None = None


def build_simulator() -> MotionSimulator:
    sim = settings.simulation
    return MotionSimulator(
        route_provider=route_provider or create_route_provider(settings),
        catalog=BUS_ROUTES,
        tick_interval_ms=sim.tick_interval_ms,
        progress_step=sim.progress_step,
        random_radius_km=sim.random_radius_km,
        end_of_route=sim.end_of_route,
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    global registry, route_provider

    route_provider = create_route_provider(settings)
    registry = SimulationRegistry(
        simulator_factory=build_simulator,
        max_sessions=settings.server.max_sessions,
        idle_timeout_seconds=settings.server.session_idle_timeout_sec,
        monitor_interval_seconds=settings.server.session_monitor_interval_sec,
    )
    registry.start_monitoring()
    logger.info("Route provider: %s", route_provider.name)

    yield

    if registry is not None:
        await registry.shutdown()
        registry = None
    route_provider = None


app.router.lifespan_context = lifespan


def _vehicle_updates(vehicles: list[Vehicle]) -> dict:
    return {"type": "vehicleUpdates", "vehicles": [v.to_payload() for v in vehicles]}


def _require_registry() -> SimulationRegistry:
    if registry is None:
        raise HTTPException(status_code=503, detail="Simulation registry not initialized")
    return registry


def _validate_session_id(session_id: str):
    if not SESSION_ID_RE.fullmatch(session_id):
        raise HTTPException(status_code=400, detail="Invalid session_id")


async def start_session_simulation(
    handle: SessionHandle,
    request: SessionStartRequest,
    on_update=None,
    on_generated=None,
) -> list[Vehicle]:
    """Generate a fleet around the requested location and (re)start its simulation."""
    location = request.location
    if location is None:
        location = settings.simulation.default_location

    handle.simulator.stop()
    handle.reference_location = location
    vehicles = generate_vehicles(
        location,
        count=request.count or settings.simulation.vehicle_count,
        catalog=BUS_ROUTES,
    )
    if on_generated is not None:
        await on_generated(vehicles)
    return await handle.simulator.start(vehicles, location, on_update)


def parse_location_message(raw: str) -> SessionStartRequest:
    try:
        message: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc.msg}") from exc
    if not isinstance(message, dict):
        raise ValueError("Message must be a JSON object")

    msg_type = message.get("type", "userLocation")
    if msg_type != "userLocation":
        raise ValueError(f"Unsupported message type: {msg_type}")

    location = message.get("location", message)
    try:
        return SessionStartRequest(
            latitude=location.get("latitude"),
            longitude=location.get("longitude"),
            count=message.get("count"),
        )
    except (AttributeError, ValidationError) as exc:
        raise ValueError("userLocation needs numeric latitude and longitude, or neither") from exc


@app.get("/")
def read_root():
    return {
        "status": "ok",
        "message": "Bus Tracker Backend API is running",
        "endpoints": {
            "routes": "/api/routes",
            "sessions": "/api/sessions",
            "session_start": "/api/sessions/{session_id}/start",
            "session_vehicles": "/api/sessions/{session_id}/vehicles",
            "vehicles_ws": "/api/vehicles/ws/{session_id}",
            "health": "/health",
        },
    }


@app.get("/health")
def health_check():
    return {
        "status": "ok" if registry is not None else "starting",
        "sessions": len(registry) if registry is not None else 0,
        "route_provider": route_provider.name if route_provider else None,
        "bus_routes": len(BUS_ROUTES),
    }


@app.get("/api/routes")
def list_bus_routes():
    return {"routes": [r.model_dump(mode="json") for r in BUS_ROUTES]}


@app.get("/api/sessions")
async def list_sessions():
    reg = _require_registry()
    return {"sessions": reg.list_sessions(), "max_sessions": reg.max_sessions}


@app.post("/api/sessions/{session_id}/start", status_code=201)
async def start_session(session_id: str, request: SessionStartRequest | None = None):
    _validate_session_id(session_id)
    if request is None:
        request = SessionStartRequest()
    reg = _require_registry()

    try:
        handle = reg.get_or_create_session(session_id)
    except SessionLimitExceededError as exc:
        raise HTTPException(status_code=503, detail=str(exc))

    reg.touch_session(session_id)
    vehicles = await start_session_simulation(handle, request)
    return {"status": "started", "session_id": session_id, **_vehicle_updates(vehicles)}


@app.get("/api/sessions/{session_id}/vehicles")
async def get_session_vehicles(session_id: str):
    _validate_session_id(session_id)
    reg = _require_registry()

    try:
        handle = reg.get_session(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    reg.touch_session(session_id)
    return {
        "session_id": session_id,
        "running": handle.simulator.is_running,
        "tick_count": handle.simulator.tick_count,
        **_vehicle_updates(handle.simulator.get_snapshot()),
    }


@app.delete("/api/sessions/{session_id}", status_code=204)
async def stop_session(session_id: str):
    _validate_session_id(session_id)
    reg = _require_registry()

    try:
        reg.remove_session(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@app.websocket("/api/vehicles/ws/{session_id}")
async def websocket_vehicles(websocket: WebSocket, session_id: str):
    if not SESSION_ID_RE.fullmatch(session_id):
        await websocket.close(code=1008, reason="invalid_session_id")
        return

    await websocket.accept()

    if registry is None:
        await websocket.send_json({"type": "error", "message": "Simulation registry unavailable"})
        await websocket.close(code=1011)
        return

    try:
        handle = registry.acquire_connection(session_id)
    except SessionLimitExceededError as exc:
        await websocket.send_json({"type": "error", "message": str(exc)})
        await websocket.close(code=1013)
        return

    async def push(vehicles: list[Vehicle]):
        try:
            await websocket.send_json(_vehicle_updates(vehicles))
        except (WebSocketDisconnect, RuntimeError) as exc:
            logger.debug("Dropping update for closed session '%s': %s", session_id, exc)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                request = parse_location_message(raw)
            except ValueError as exc:
                await websocket.send_json({"type": "error", "message": str(exc)})
                continue
            await start_session_simulation(handle, request, on_update=push, on_generated=push)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Vehicle websocket failed for session '%s'", session_id)
    finally:
        registry_ref = registry
        if registry_ref is not None:
            registry_ref.release_connection(session_id)


@app.websocket("/api/vehicles/ws")
async def websocket_vehicles_default(websocket: WebSocket):
    await websocket_vehicles(websocket, uuid4().hex)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=3001, workers=1, loop="asyncio")
