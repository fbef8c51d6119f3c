"""In-process stand-ins for the routing, cart, geocoding and payment providers."""

import asyncio
from decimal import Decimal
from typing import Optional

from services.store_service.clients.geocoding_client import (
    GeocodeResult,
    ParsedAddress,
    ReverseGeocodeResult,
)
from services.store_service.clients.razorpay_client import (
    GatewayOrder,
    RazorpayClient,
    RazorpayError,
)
from services.store_service.clients.routing_client import Route
from services.store_service.exceptions import ProviderUnavailable
from services.store_service.schemas import CartSnapshot, CartSnapshotItem
from services.store_service.services.geo import Coordinate
from services.store_service.services.pricing import DeliverySettings, DeliverySlab

STORE_LOCATION = Coordinate(latitude=10.7870, longitude=79.1378)
DESTINATION = Coordinate(latitude=10.8000, longitude=79.1500)


def make_delivery_settings(**overrides) -> DeliverySettings:
    defaults = {
        "free_distance_limit_km": 5.0,
        "free_delivery_threshold": Decimal("500"),
        "max_delivery_distance_km": 20.0,
        "store_location": STORE_LOCATION,
        "slabs": (
            DeliverySlab(0, 5, Decimal("30")),
            DeliverySlab(5, 10, Decimal("60")),
            DeliverySlab(10, 20, Decimal("90")),
        ),
    }
    defaults.update(overrides)
    return DeliverySettings(**defaults)


class FakeRoutingClient:
    """Answers with a fixed road distance, an error or a hang."""

    def __init__(
        self,
        distance_meters: float = 3000.0,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.distance_meters = distance_meters
        self.error = error
        self.delay = delay
        self.calls = []

    async def route(self, origin: Coordinate, destination: Coordinate) -> Route:
        self.calls.append((origin, destination))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return Route(distance_meters=self.distance_meters)


class FakeCartClient:
    def __init__(self, items: Optional[list] = None):
        self.items = items if items is not None else [
            CartSnapshotItem(
                product_id="prod-rice",
                name="Ponni Rice 5kg",
                unit_price=Decimal("320.00"),
                quantity=1,
                tax_rate_percent=Decimal("5"),
                tax_inclusive=True,
            ),
            CartSnapshotItem(
                product_id="prod-dal",
                variant_id="1kg",
                name="Toor Dal",
                unit_price=Decimal("80.00"),
                quantity=1,
            ),
        ]

    async def get_cart_snapshot(self, member_auth_id: str) -> CartSnapshot:
        return CartSnapshot(items=self.items)


class FakeGeocodingClient:
    async def search(self, query: str, limit: int = 5):
        return [
            GeocodeResult(
                latitude=10.787, longitude=79.1378, display_name=f"{query}, Thanjavur"
            )
        ][:limit]

    async def reverse(self, latitude: float, longitude: float):
        return ReverseGeocodeResult(
            latitude=latitude,
            longitude=longitude,
            display_name="12, Gandhiji Road, Thanjavur, Tamil Nadu, 613001, India",
            address=ParsedAddress(
                street="12, Gandhiji Road",
                city="Thanjavur",
                state="Tamil Nadu",
                zip_code="613001",
                country="India",
                title="Thanjavur",
                full="12, Gandhiji Road, Thanjavur, Tamil Nadu, 613001, India",
            ),
        )


class FakeGateway(RazorpayClient):
    """Razorpay client with real signature checks and an in-memory Orders API."""

    def __init__(self, fail_with: Optional[ProviderUnavailable] = None):
        super().__init__(
            key_id="rzp_test_key",
            key_secret="rzp_test_secret",
            webhook_secret="rzp_test_webhook_secret",
        )
        self.fail_with = fail_with
        self.created = []

    async def create_order(
        self,
        amount_paise: int,
        currency: str,
        receipt: str,
        notes: Optional[dict] = None,
    ) -> GatewayOrder:
        if self.fail_with is not None:
            raise self.fail_with
        order = GatewayOrder(
            id=f"order_test{len(self.created) + 1:04d}",
            amount=amount_paise,
            currency=currency,
            receipt=receipt,
            status="created",
        )
        self.created.append((order, notes))
        return order


def gateway_down() -> RazorpayError:
    return RazorpayError("Razorpay request failed: connection refused")
