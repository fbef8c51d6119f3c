"""Nominatim geocoding client for the storefront's location picker."""

from dataclasses import dataclass
from typing import List, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.store_service.exceptions import ProviderUnavailable

logger = get_logger(__name__)

settings = get_settings()

# Address components in the order they make up a street line
STREET_KEYS = (
    "house_number",
    "house_name",
    "building",
    "apartment",
    "room",
    "road",
    "residential",
    "pedestrian",
    "path",
    "hamlet",
    "neighbourhood",
    "suburb",
    "allotments",
)
# Many Indian locations have no "city"; the district or suburb is what people expect
CITY_KEYS = (
    "city",
    "town",
    "village",
    "municipality",
    "city_district",
    "district",
    "suburb",
    "county",
    "state_district",
)
STATE_KEYS = ("state", "region", "state_district")
TITLE_KEYS = ("neighbourhood", "suburb", "hamlet", "village", "town", "city")

DEFAULT_COUNTRY = "India"
DEFAULT_TITLE = "Selected Location"


@dataclass
class GeocodeResult:
    latitude: float
    longitude: float
    display_name: str


@dataclass
class ParsedAddress:
    street: str
    city: str
    state: str
    zip_code: str
    country: str
    title: str
    full: Optional[str] = None


@dataclass
class ReverseGeocodeResult:
    latitude: float
    longitude: float
    display_name: Optional[str]
    address: Optional[ParsedAddress]


def _first(address: dict, keys) -> str:
    for key in keys:
        if address.get(key):
            return address[key]
    return ""


def parse_address(data: dict) -> Optional[ParsedAddress]:
    """Turn a Nominatim ``address`` object into form fields."""
    if not data or not data.get("address"):
        return None

    address = data["address"]
    display_name = data.get("display_name")

    street = ", ".join([address[k] for k in STREET_KEYS if address.get(k)][:3])
    if not street and display_name:
        street = display_name.split(",")[0].strip()

    return ParsedAddress(
        street=street,
        city=_first(address, CITY_KEYS),
        state=_first(address, STATE_KEYS),
        zip_code=address.get("postcode") or "",
        country=address.get("country") or DEFAULT_COUNTRY,
        title=_first(address, TITLE_KEYS) or DEFAULT_TITLE,
        full=display_name,
    )


class GeocodingClient:
    """Async client for Nominatim search and reverse lookups."""

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        user_agent: str = None,
    ):
        self.base_url = (base_url or settings.GEOCODING_PROVIDER_URL).rstrip("/")
        self.timeout = timeout or settings.GEOCODING_TIMEOUT_SECONDS
        # Nominatim's usage policy requires an identifying User-Agent
        self._headers = {
            "User-Agent": user_agent or settings.GEOCODING_USER_AGENT,
            "Accept": "application/json",
        }

    async def _request(self, endpoint: str, params: dict):
        url = f"{self.base_url}{endpoint}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    "GET", url, headers=self._headers, params={"format": "json", **params}
                )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Geocoding request failed: {e}")
            raise ProviderUnavailable("Geocoding provider is unavailable") from e

        if not response.is_success:
            logger.error(f"Geocoding error: {response.status_code} - {data}")
            raise ProviderUnavailable(
                f"Geocoding provider returned {response.status_code}"
            )
        return data

    async def search(self, query: str, limit: int = 5) -> List[GeocodeResult]:
        """Forward geocode a free-text query."""
        data = await self._request("/search", {"q": query, "limit": limit})

        results = []
        for item in data or []:
            try:
                results.append(
                    GeocodeResult(
                        latitude=float(item["lat"]),
                        longitude=float(item["lon"]),
                        display_name=item.get("display_name", ""),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed geocode result: %s", item)
        return results

    async def reverse(self, latitude: float, longitude: float) -> ReverseGeocodeResult:
        """Reverse geocode a point into a parsed address."""
        data = await self._request(
            "/reverse", {"lat": latitude, "lon": longitude, "addressdetails": 1}
        )
        if data.get("error"):
            # Nominatim answers 200 with {"error": "Unable to geocode"} for open sea etc.
            return ReverseGeocodeResult(
                latitude=latitude, longitude=longitude, display_name=None, address=None
            )
        return ReverseGeocodeResult(
            latitude=latitude,
            longitude=longitude,
            display_name=data.get("display_name"),
            address=parse_address(data),
        )


def get_geocoding_client() -> GeocodingClient:
    """Get a GeocodingClient instance."""
    return GeocodingClient()
