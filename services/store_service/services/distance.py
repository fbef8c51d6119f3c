"""Billable delivery distance: road route first, corrected great-circle fallback."""

import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol

from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.store_service.models.enums import DistanceSource
from services.store_service.services import geo
from services.store_service.services.geo import Coordinate

logger = get_logger(__name__)

# Straight-line distance under-counts real roads; this buffer approximates them.
ROAD_DISTANCE_BUFFER = 1.3


class RoutingProvider(Protocol):
    async def route(self, origin: Coordinate, destination: Coordinate): ...


@dataclass(frozen=True)
class DistanceResult:
    distance_km: float
    source: DistanceSource


class DistanceResolver:
    """Resolve the billable distance between two coordinates.

    The routing provider is authoritative when it answers in time. Any failure,
    including a timeout or a malformed payload, falls back to haversine
    distance times ``ROAD_DISTANCE_BUFFER``; that fallback cannot fail for
    valid coordinates, so provider errors never reach the caller. Nothing is
    cached between calls.
    """

    def __init__(self, routing: RoutingProvider, timeout: Optional[float] = None):
        self.routing = routing
        self.timeout = timeout or get_settings().ROUTING_TIMEOUT_SECONDS

    async def resolve(self, origin: Coordinate, destination: Coordinate) -> DistanceResult:
        if origin == destination:
            return DistanceResult(distance_km=0.0, source=DistanceSource.HAVERSINE)

        try:
            route = await asyncio.wait_for(
                self.routing.route(origin, destination), timeout=self.timeout
            )
            road_km = round(float(route.distance_meters) / 1000.0, 3)
        except Exception as e:
            straight = geo.haversine_km(origin, destination)
            distance_km = round(straight * ROAD_DISTANCE_BUFFER, 3)
            logger.warning(
                "Routing unavailable, using buffered haversine distance %.3f km: %s: %s",
                distance_km,
                type(e).__name__,
                str(e) or "timeout",
                extra={
                    "extra_fields": {
                        "straight_line_km": round(straight, 3),
                        "buffer": ROAD_DISTANCE_BUFFER,
                    }
                },
            )
            return DistanceResult(distance_km=distance_km, source=DistanceSource.HAVERSINE)

        return DistanceResult(distance_km=road_km, source=DistanceSource.ROAD)
