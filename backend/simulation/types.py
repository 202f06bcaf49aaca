"""Types for simulation session management."""
from __future__ import annotations

import time
from dataclasses import dataclass, field

from pydantic import BaseModel, Field, model_validator

from common.types import Coordinate
from .simulator import MotionSimulator

SESSION_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"


class SessionStartRequest(BaseModel):
    """
    Reference location a client asks the fleet to be generated around.

    Latitude and longitude come together or not at all; without them the
    server falls back to its configured default region.
    """

    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    count: int | None = Field(None, ge=1, le=50)

    @model_validator(mode="after")
    def check_pair(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self

    @property
    def location(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


@dataclass
class SessionHandle:
    """One client's simulator plus bookkeeping for the idle reaper."""

    session_id: str
    simulator: MotionSimulator
    created_at: float = field(default_factory=time.monotonic)
    last_heartbeat: float = field(default_factory=time.monotonic)
    connection_count: int = 0
    reference_location: Coordinate | None = None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "status": "running" if self.simulator.is_running else "idle",
            "created_at_monotonic": self.created_at,
            "last_heartbeat_monotonic": self.last_heartbeat,
            "connection_count": self.connection_count,
            "reference_location": (
                self.reference_location.model_dump() if self.reference_location else None
            ),
            **self.simulator.to_dict(),
        }
