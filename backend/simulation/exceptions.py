"""Custom exceptions for vehicle simulation."""


class SimulationError(Exception):
    """Base simulation exception."""


class SimulationNotRunningError(SimulationError):
    """Raised when tick internals are driven before start() or after stop()."""


class SessionAlreadyExistsError(SimulationError):
    """Raised when attempting to create a session id that is already registered."""


class SessionLimitExceededError(SimulationError):
    """Raised when max concurrent sessions is reached."""


class SessionNotFoundError(SimulationError):
    """Raised when a session does not exist in the registry."""
