"""Coordinates and great-circle distance."""

import math
from dataclasses import dataclass

from services.store_service.exceptions import InvalidCoordinate

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 point. Immutable once built."""

    latitude: float
    longitude: float

    def __post_init__(self):
        try:
            lat = float(self.latitude)
            lon = float(self.longitude)
        except (TypeError, ValueError):
            raise InvalidCoordinate(
                f"Coordinate must be numeric, got ({self.latitude!r}, {self.longitude!r})"
            )
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise InvalidCoordinate("Coordinate must be finite")
        if not -90.0 <= lat <= 90.0:
            raise InvalidCoordinate(f"Latitude {lat} is outside [-90, 90]")
        if not -180.0 <= lon <= 180.0:
            raise InvalidCoordinate(f"Longitude {lon} is outside [-180, 180]")
        object.__setattr__(self, "latitude", lat)
        object.__setattr__(self, "longitude", lon)


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in kilometres.

    Identical points return exactly 0.0; the intermediate term is clamped to
    [0, 1] so rounding noise never reaches ``sqrt``/``asin`` out of domain.
    """
    if a == b:
        return 0.0

    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))
