"""OSRM road-routing client used by the distance resolver."""

from dataclasses import dataclass, field
from typing import List, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.store_service.exceptions import ProviderUnavailable
from services.store_service.services.geo import Coordinate

logger = get_logger(__name__)

settings = get_settings()


@dataclass
class Route:
    """Driving route between two points."""

    distance_meters: float
    path: List[Coordinate] = field(default_factory=list)


class RoutingClient:
    """Async client for the OSRM ``route`` service."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        profile: str = "driving",
    ):
        self.base_url = (base_url or settings.ROUTING_PROVIDER_URL).rstrip("/")
        self.timeout = timeout or settings.ROUTING_TIMEOUT_SECONDS
        self.profile = profile

    async def route(self, origin: Coordinate, destination: Coordinate) -> Route:
        """
        Fetch the driving route from ``origin`` to ``destination``.

        Raises:
            ProviderUnavailable: network error, non-"Ok" response or no route.
        """
        # OSRM takes lon,lat pairs
        url = (
            f"{self.base_url}/route/v1/{self.profile}/"
            f"{origin.longitude},{origin.latitude};"
            f"{destination.longitude},{destination.latitude}"
        )
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    "GET",
                    url,
                    params={"overview": "full", "geometries": "geojson"},
                )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderUnavailable(f"Routing provider request failed: {e}") from e

        if not isinstance(data, dict):
            raise ProviderUnavailable("Routing provider returned an unexpected payload")

        if response.status_code != 200 or data.get("code") != "Ok":
            raise ProviderUnavailable(
                f"Routing provider returned {response.status_code} "
                f"({data.get('code', 'no code')})"
            )

        routes = data.get("routes") or []
        if (
            not isinstance(routes, list)
            or not routes
            or not isinstance(routes[0], dict)
            or routes[0].get("distance") is None
        ):
            raise ProviderUnavailable("Routing provider returned no route")

        first = routes[0]
        try:
            coordinates = (first.get("geometry") or {}).get("coordinates") or []
            path = [Coordinate(latitude=lat, longitude=lon) for lon, lat in coordinates]
            distance_meters = float(first["distance"])
        except (AttributeError, TypeError, ValueError) as e:
            raise ProviderUnavailable(f"Malformed route geometry: {e}") from e

        return Route(distance_meters=distance_meters, path=path)


def get_routing_client() -> RoutingClient:
    """Get a RoutingClient instance."""
    return RoutingClient()
