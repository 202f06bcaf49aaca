"""Google Directions API route provider."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp
from openrouteservice import convert

from common.types import Coordinate, RouteResult
from .base import RouteProvider
from .exceptions import RouteProviderError

logger = logging.getLogger(__name__)


def _format_point(point: Coordinate) -> str:
    return f"{point.latitude},{point.longitude}"


def parse_directions_response(data: dict[str, Any]) -> RouteResult | None:
    """
    Convert a Directions API JSON body into a RouteResult.

    Returns None when the API reports a non-OK status (ZERO_RESULTS,
    REQUEST_DENIED, ...). Raises RouteProviderError on a malformed OK body.
    """
    status = data.get("status")
    if status != "OK":
        logger.warning("Directions API returned status %s: %s", status, data.get("error_message", ""))
        return None

    try:
        route = data["routes"][0]
        leg = route["legs"][0]
        encoded = route["overview_polyline"]["points"]
        decoded = convert.decode_polyline(encoded)
        # decode_polyline yields GeoJSON order: [lon, lat]
        waypoints = [
            Coordinate(latitude=float(lat), longitude=float(lon))
            for lon, lat in decoded["coordinates"]
        ]
        distance_km = float(leg["distance"]["value"]) / 1000
        duration_min = float(leg["duration"]["value"]) / 60
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise RouteProviderError(f"Malformed directions response: {type(exc).__name__}: {exc}") from exc

    return RouteResult(
        waypoints=waypoints,
        distance_km=distance_km,
        duration_min=duration_min,
        start_address=leg.get("start_address"),
        end_address=leg.get("end_address"),
    )


class GoogleDirectionsProvider(RouteProvider):
    name = "google_directions"

    def __init__(self, api_key: str, base_url: str, timeout_sec: float = 10.0):
        if not api_key:
            raise ValueError("GOOGLE_MAPS_API_KEY is missing")
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = aiohttp.ClientTimeout(total=timeout_sec)

    async def _fetch_json(self, params: dict[str, str]) -> dict[str, Any]:
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            async with session.get(self._base_url, params=params) as response:
                if response.status != 200:
                    detail = await response.text()
                    raise RouteProviderError(f"HTTP {response.status}: {detail[:200]}")
                return await response.json(content_type=None)

    async def resolve_route(
        self, origin: Coordinate, destination: Coordinate
    ) -> RouteResult | None:
        params = {
            "origin": _format_point(origin),
            "destination": _format_point(destination),
            "key": self._api_key,
        }
        try:
            data = await self._fetch_json(params)
        except RouteProviderError:
            raise
        except asyncio.TimeoutError as exc:
            raise RouteProviderError("Timeout while fetching directions") from exc
        except (aiohttp.ClientError, ValueError) as exc:
            raise RouteProviderError(f"Directions request failed: {type(exc).__name__}: {exc}") from exc

        if not isinstance(data, dict):
            raise RouteProviderError("Directions response is not a JSON object")
        return parse_directions_response(data)
