"""Simulation and server settings read from the environment."""
from __future__ import annotations

import os
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from common.types import Coordinate

GOOGLE_DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

_DEFAULT_CORS_ORIGINS = [
    "http://localhost:8081",
    "http://localhost:19006",
    "http://127.0.0.1:8081",
    "http://127.0.0.1:19006",
]


class EndOfRoutePolicy(str, Enum):
    PING_PONG = "ping_pong"
    LOOP = "loop"


def _parse_cors_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS", "")
    if raw.strip():
        return [o.strip() for o in raw.split(",") if o.strip()]
    return list(_DEFAULT_CORS_ORIGINS)


class DirectionsConfig(BaseModel):
    api_key: str = Field(default_factory=lambda: os.getenv("GOOGLE_MAPS_API_KEY", "").strip())
    base_url: str = Field(
        default_factory=lambda: os.getenv("DIRECTIONS_API_URL", "").strip() or GOOGLE_DIRECTIONS_URL
    )
    timeout_sec: float = Field(
        default_factory=lambda: float(os.getenv("DIRECTIONS_TIMEOUT_SEC", "10")), gt=0
    )


class SimulationConfig(BaseModel):
    tick_interval_ms: int = Field(
        default_factory=lambda: int(os.getenv("SIMULATION_TICK_INTERVAL_MS", "100")),
        ge=10,
        le=5000,
    )
    progress_step: float = Field(
        default_factory=lambda: float(os.getenv("SIMULATION_PROGRESS_STEP", "0.01")),
        gt=0,
        le=1,
    )
    end_of_route: EndOfRoutePolicy = Field(
        default_factory=lambda: EndOfRoutePolicy(
            os.getenv("END_OF_ROUTE_POLICY", EndOfRoutePolicy.PING_PONG.value).strip().lower()
        )
    )
    random_radius_km: float = Field(
        default_factory=lambda: float(os.getenv("RANDOM_DESTINATION_RADIUS_KM", "3.0")), gt=0
    )
    vehicle_count: int = Field(
        default_factory=lambda: int(os.getenv("DEFAULT_VEHICLE_COUNT", "5")), ge=1
    )
    default_location: Coordinate = Field(
        default_factory=lambda: Coordinate(
            latitude=float(os.getenv("DEFAULT_LATITUDE", "24.710616")),
            longitude=float(os.getenv("DEFAULT_LONGITUDE", "46.6855285")),
        )
    )


class ServerConfig(BaseModel):
    max_sessions: int = Field(default_factory=lambda: int(os.getenv("MAX_SESSIONS", "16")), ge=1)
    session_idle_timeout_sec: float = Field(
        default_factory=lambda: float(os.getenv("SESSION_IDLE_TIMEOUT_SEC", "300")), ge=0
    )
    session_monitor_interval_sec: float = Field(
        default_factory=lambda: float(os.getenv("SESSION_MONITOR_INTERVAL_SEC", "5")), gt=0
    )
    cors_origins: List[str] = Field(default_factory=_parse_cors_origins)


class Settings(BaseModel):
    directions: DirectionsConfig = Field(default_factory=DirectionsConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


settings = Settings()
