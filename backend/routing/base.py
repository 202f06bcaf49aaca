"""Route provider contract."""
from __future__ import annotations

import abc

from common.types import Coordinate, RouteResult


class RouteProvider(abc.ABC):
    """Resolves a travel path between two coordinates."""

    name: str = "base"

    @abc.abstractmethod
    async def resolve_route(
        self, origin: Coordinate, destination: Coordinate
    ) -> RouteResult | None:
        """
        Return ordered waypoints from origin to destination.

        ``None`` means the provider has no route for this pair. Transport or
        parsing failures raise ``RouteProviderError``.
        """
        pass
