"""Route providers: directions lookup with a straight-line fallback."""
from __future__ import annotations

import logging

from common.config import Settings
from .base import RouteProvider
from .exceptions import RouteProviderError
from .google import GoogleDirectionsProvider, parse_directions_response
from .straight_line import StraightLineProvider, direct_line

logger = logging.getLogger(__name__)


def create_route_provider(settings: Settings) -> RouteProvider:
    directions = settings.directions
    if directions.api_key:
        return GoogleDirectionsProvider(
            api_key=directions.api_key,
            base_url=directions.base_url,
            timeout_sec=directions.timeout_sec,
        )
    logger.warning("GOOGLE_MAPS_API_KEY not set; vehicles will follow straight-line routes")
    return StraightLineProvider()


__all__ = [
    "GoogleDirectionsProvider",
    "RouteProvider",
    "RouteProviderError",
    "StraightLineProvider",
    "create_route_provider",
    "direct_line",
    "parse_directions_response",
]
