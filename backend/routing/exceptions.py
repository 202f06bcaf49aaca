"""Custom exceptions for route resolution."""


class RouteProviderError(Exception):
    """Raised when a route provider fails (network error, bad response)."""
