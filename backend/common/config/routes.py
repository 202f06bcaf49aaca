"""Bus route catalog."""
from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from common.types import BusRoute
from .paths import BUS_ROUTES_PATH

logger = logging.getLogger(__name__)


def load_bus_routes(path: Path | None = None) -> list[BusRoute]:
    path = path or BUS_ROUTES_PATH
    if not path.exists():
        logger.warning("Bus route catalog not found: %s", path)
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return [BusRoute(**r) for r in data.get("routes", [])]
    except (json.JSONDecodeError, OSError, ValidationError, AttributeError) as exc:
        logger.warning("Failed to load bus route catalog %s: %s", path, exc)
        return []


def find_bus_route(routes: list[BusRoute], route_id: str | None) -> BusRoute | None:
    if not route_id:
        return None
    for route in routes:
        if route.id == route_id:
            return route
    return None


BUS_ROUTES = load_bus_routes()
