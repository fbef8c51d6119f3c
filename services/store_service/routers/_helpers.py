"""Shared dependencies for store routers."""

from services.store_service.clients.razorpay_client import (
    RazorpayClient,
    get_razorpay_client,
)
from services.store_service.clients.routing_client import get_routing_client
from services.store_service.exceptions import PaymentInitializationError
from services.store_service.services.distance import DistanceResolver


def get_distance_resolver() -> DistanceResolver:
    return DistanceResolver(get_routing_client())


def get_payment_gateway() -> RazorpayClient:
    """Razorpay client; missing credentials surface as a payment init failure."""
    try:
        return get_razorpay_client()
    except ValueError as e:
        raise PaymentInitializationError("Online payments are not configured") from e
