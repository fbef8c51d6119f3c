"""Delivery pricing: slab table, free-delivery rules, configuration snapshot."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from libs.common.config import Settings, get_settings
from libs.common.currency import to_amount
from libs.common.logging import get_logger
from services.store_service.exceptions import DistanceExceeded
from services.store_service.services.geo import Coordinate

logger = get_logger(__name__)

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class DeliverySlab:
    """Flat delivery fee for a distance band."""

    min_distance_km: float
    max_distance_km: float
    charge: Decimal

    def __post_init__(self):
        if self.min_distance_km < 0 or self.max_distance_km < self.min_distance_km:
            raise ValueError(
                f"Invalid slab range [{self.min_distance_km}, {self.max_distance_km}]"
            )
        object.__setattr__(self, "charge", to_amount(self.charge))
        if self.charge < 0:
            raise ValueError("Slab charge cannot be negative")


@dataclass(frozen=True)
class DeliverySettings:
    """Immutable delivery configuration snapshot, injected per request."""

    free_distance_limit_km: float
    free_delivery_threshold: Decimal
    max_delivery_distance_km: float
    store_location: Coordinate
    slabs: tuple[DeliverySlab, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "slabs", tuple(self.slabs))
        object.__setattr__(
            self, "free_delivery_threshold", to_amount(self.free_delivery_threshold)
        )

    def sorted_slabs(self) -> list[DeliverySlab]:
        return sorted(self.slabs, key=lambda slab: slab.min_distance_km)


def compute_delivery_charge(
    distance_km: float,
    cart_subtotal: Decimal,
    settings: DeliverySettings,
) -> Decimal:
    """
    Delivery charge for a distance and cart subtotal.

    Rules, in order:
    1. within the free-distance radius -> free;
    2. subtotal at or above the free-delivery threshold -> free;
    3. otherwise the charge of the last slab (sorted by lower bound) whose
       lower bound is <= the distance; no qualifying slab -> free.

    Pure: the maximum-distance check belongs to the caller
    (see ``ensure_deliverable``).
    """
    if distance_km <= settings.free_distance_limit_km:
        return ZERO
    if to_amount(cart_subtotal) >= settings.free_delivery_threshold:
        return ZERO

    selected: Optional[DeliverySlab] = None
    for slab in settings.sorted_slabs():
        if slab.min_distance_km <= distance_km:
            selected = slab
        else:
            break

    if selected is None:
        return ZERO
    return selected.charge


def ensure_deliverable(distance_km: float, settings: DeliverySettings) -> None:
    """Refuse delivery beyond the configured maximum distance."""
    if distance_km > settings.max_delivery_distance_km:
        raise DistanceExceeded(distance_km, settings.max_delivery_distance_km)


# ---------------------------------------------------------------------------
# Configuration snapshot
# ---------------------------------------------------------------------------


def build_slabs(raw_slabs: Iterable[dict]) -> tuple[DeliverySlab, ...]:
    return tuple(
        DeliverySlab(
            min_distance_km=float(raw["min_distance_km"]),
            max_distance_km=float(raw["max_distance_km"]),
            charge=to_amount(raw["charge"]),
        )
        for raw in raw_slabs
    )


def delivery_settings_from_config(config: Settings) -> DeliverySettings:
    return DeliverySettings(
        free_distance_limit_km=config.FREE_DISTANCE_LIMIT_KM,
        free_delivery_threshold=to_amount(config.FREE_DELIVERY_THRESHOLD),
        max_delivery_distance_km=config.MAX_DELIVERY_DISTANCE_KM,
        store_location=Coordinate(
            latitude=config.STORE_LATITUDE, longitude=config.STORE_LONGITUDE
        ),
        slabs=build_slabs(config.DELIVERY_SLABS),
    )


_current_settings: Optional[DeliverySettings] = None


def get_delivery_settings() -> DeliverySettings:
    """Current delivery settings snapshot (FastAPI dependency)."""
    global _current_settings
    if _current_settings is None:
        _current_settings = delivery_settings_from_config(get_settings())
    return _current_settings


def replace_delivery_settings(snapshot: DeliverySettings) -> DeliverySettings:
    """Swap in a whole new snapshot; in-flight requests keep the old one."""
    global _current_settings
    previous = _current_settings
    _current_settings = snapshot
    logger.info(
        "Delivery settings replaced (%d slabs, max %.1f km)",
        len(snapshot.slabs),
        snapshot.max_delivery_distance_km,
    )
    return previous
