"""Vehicle motion simulation package."""

from .exceptions import (
    SessionAlreadyExistsError,
    SessionLimitExceededError,
    SessionNotFoundError,
    SimulationError,
    SimulationNotRunningError,
)
from .fleet import generate_vehicles
from .motion import advance_vehicle
from .registry import SimulationRegistry
from .simulator import MotionSimulator
from .types import SESSION_ID_PATTERN, SessionHandle, SessionStartRequest

__all__ = [
    "MotionSimulator",
    "SESSION_ID_PATTERN",
    "SessionAlreadyExistsError",
    "SessionHandle",
    "SessionLimitExceededError",
    "SessionNotFoundError",
    "SessionStartRequest",
    "SimulationError",
    "SimulationNotRunningError",
    "SimulationRegistry",
    "advance_vehicle",
    "generate_vehicles",
]
