"""Location lookups for the address picker (search and reverse geocoding)."""

from fastapi import APIRouter, Depends, Query, Request
from libs.common.rate_limit import limiter
from services.store_service.clients.geocoding_client import (
    GeocodingClient,
    get_geocoding_client,
)
from services.store_service.schemas import (
    GeocodeResultResponse,
    ParsedAddressResponse,
    ReverseGeocodeResponse,
)

router = APIRouter(prefix="/maps", tags=["store-maps"])


@router.get("/search", response_model=list[GeocodeResultResponse])
@limiter.limit("30/minute")
async def search_places(
    request: Request,
    q: str = Query(..., min_length=2, max_length=200),
    limit: int = Query(5, ge=1, le=10),
    geocoder: GeocodingClient = Depends(get_geocoding_client),
):
    """Search places by free text."""
    results = await geocoder.search(q, limit=limit)
    return [
        GeocodeResultResponse(
            latitude=r.latitude, longitude=r.longitude, display_name=r.display_name
        )
        for r in results
    ]


@router.get("/reverse", response_model=ReverseGeocodeResponse)
@limiter.limit("30/minute")
async def reverse_geocode(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    geocoder: GeocodingClient = Depends(get_geocoding_client),
):
    """Resolve a map pin to an address."""
    result = await geocoder.reverse(lat, lon)
    address = None
    if result.address is not None:
        address = ParsedAddressResponse(**vars(result.address))
    return ReverseGeocodeResponse(
        latitude=result.latitude,
        longitude=result.longitude,
        display_name=result.display_name,
        address=address,
    )
