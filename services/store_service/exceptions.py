"""Domain errors raised by the store core.

Each error carries the HTTP status and machine-readable code used by the
app-level exception handler; services raise them, routers never translate.
"""

from typing import Any, Optional


class StoreError(Exception):
    """Base exception for store domain errors."""

    status_code: int = 400
    code: str = "STORE_ERROR"

    def __init__(self, message: str, **extra: Any):
        self.message = message
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, **self.extra}


class ProviderUnavailable(StoreError):
    """Routing, geocoding, cart or payment provider could not be reached."""

    status_code = 503
    code = "PROVIDER_UNAVAILABLE"


class PaymentInitializationError(ProviderUnavailable):
    status_code = 502
    code = "PAYMENT_INIT_FAILED"


class InvalidCoordinate(StoreError, ValueError):
    status_code = 422
    code = "INVALID_COORDINATE"


class DistanceExceeded(StoreError):
    status_code = 422
    code = "DISTANCE_EXCEEDED"

    def __init__(self, distance_km: float, max_distance_km: float):
        super().__init__(
            f"Delivery location is {distance_km:.2f} km away; "
            f"we deliver up to {max_distance_km:.2f} km",
            distance_km=distance_km,
            max_delivery_distance_km=max_distance_km,
        )
        self.distance_km = distance_km
        self.max_distance_km = max_distance_km


class InvalidTransition(StoreError):
    status_code = 409
    code = "INVALID_TRANSITION"

    def __init__(
        self,
        current: Any,
        target: Any,
        message: Optional[str] = None,
    ):
        current_value = getattr(current, "value", current)
        target_value = getattr(target, "value", target)
        super().__init__(
            message or f"Cannot move order from {current_value} to {target_value}",
            current_status=current_value,
            target_status=target_value,
        )
        self.current = current
        self.target = target


class FastForwardInterrupted(StoreError):
    """A step of the COD fast-forward chain failed; earlier steps stay applied."""

    status_code = 409
    code = "FAST_FORWARD_INTERRUPTED"

    def __init__(self, reached: Any, failed_target: Any, cause: StoreError):
        reached_value = getattr(reached, "value", reached)
        target_value = getattr(failed_target, "value", failed_target)
        super().__init__(
            f"Stopped at {reached_value}: {cause.message}",
            reached_status=reached_value,
            failed_status=target_value,
        )
        self.reached = reached
        self.cause = cause


class ConflictingTransition(StoreError):
    """The order changed underneath this request; re-fetch and retry once."""

    status_code = 409
    code = "CONFLICTING_TRANSITION"


class PaymentConflict(ConflictingTransition):
    """A verified payment arrived for an order that was already cancelled."""

    code = "PAYMENT_CONFLICT"


class VerificationFailed(StoreError):
    status_code = 400
    code = "VERIFICATION_FAILED"


class EmptyCart(StoreError):
    status_code = 400
    code = "EMPTY_CART"


class OrderNotFound(StoreError):
    status_code = 404
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: Any):
        super().__init__("Order not found", order_id=str(order_id))
