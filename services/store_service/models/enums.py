"""Enum definitions for store service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    CREATED = "CREATED"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PAID = "PAID"
    ADMIN_CONFIRMED = "ADMIN_CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, raw: "OrderStatus | str") -> "OrderStatus":
        """Map a canonical or legacy status string onto the canonical set.

        Matching is case-insensitive. Raises ValueError for unknown strings.
        """
        if isinstance(raw, cls):
            return raw
        text = str(raw).strip()
        try:
            return cls(text.upper())
        except ValueError:
            pass
        legacy = LEGACY_STATUS_MAP.get(text.lower())
        if legacy is None:
            raise ValueError(f"Unknown order status: {raw!r}")
        return legacy

    @classmethod
    def stored_values(cls, status: "OrderStatus") -> list[str]:
        """Every raw value that reads back as ``status`` (canonical first)."""
        return [status.value] + [
            legacy for legacy, canonical in LEGACY_STATUS_MAP.items()
            if canonical is status
        ]

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


# Lower-case statuses written by the previous order schema.
LEGACY_STATUS_MAP: dict[str, OrderStatus] = {
    "pending": OrderStatus.CREATED,
    "confirmed": OrderStatus.ADMIN_CONFIRMED,
    "processing": OrderStatus.ADMIN_CONFIRMED,
    "shipped": OrderStatus.SHIPPED,
    "delivered": OrderStatus.DELIVERED,
    "cancelled": OrderStatus.CANCELLED,
}


class PaymentMethod(str, enum.Enum):
    COD = "COD"
    ONLINE = "ONLINE"


class PaymentStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    FAILED = "FAILED"


class PaymentAttemptStatus(str, enum.Enum):
    CREATED = "CREATED"
    PAID = "PAID"
    FAILED = "FAILED"
    ABANDONED = "ABANDONED"


class TransitionActor(str, enum.Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"
    PAYMENT = "payment"


class DistanceSource(str, enum.Enum):
    ROAD = "road"
    HAVERSINE = "haversine"
