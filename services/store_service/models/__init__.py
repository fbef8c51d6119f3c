"""Store Service models package."""

from services.store_service.models.commerce import (
    Order,
    OrderItem,
    OrderStatusEvent,
    OrderStatusType,
    PaymentAttempt,
)
from services.store_service.models.enums import (
    LEGACY_STATUS_MAP,
    DistanceSource,
    OrderStatus,
    PaymentAttemptStatus,
    PaymentMethod,
    PaymentStatus,
    TransitionActor,
)

__all__ = [
    "DistanceSource",
    "LEGACY_STATUS_MAP",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderStatusEvent",
    "OrderStatusType",
    "PaymentAttempt",
    "PaymentAttemptStatus",
    "PaymentMethod",
    "PaymentStatus",
    "TransitionActor",
]
