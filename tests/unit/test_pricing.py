"""Unit tests for the delivery pricing engine."""

from decimal import Decimal

import pytest
from libs.common.config import Settings
from services.store_service.exceptions import DistanceExceeded
from services.store_service.services import pricing
from services.store_service.services.pricing import (
    DeliverySlab,
    compute_delivery_charge,
    delivery_settings_from_config,
    ensure_deliverable,
)
from tests.fakes import make_delivery_settings


@pytest.fixture
def settings():
    return make_delivery_settings()


@pytest.mark.unit
@pytest.mark.parametrize(
    "distance_km,expected",
    [
        (0.0, Decimal("0")),
        (5.0, Decimal("0")),  # free radius is inclusive
        (5.001, Decimal("60")),
        (8.0, Decimal("60")),
        (10.0, Decimal("90")),
        (19.99, Decimal("90")),
        (20.0, Decimal("90")),
    ],
)
def test_charge_by_distance(settings, distance_km, expected):
    assert compute_delivery_charge(distance_km, Decimal("200"), settings) == expected


@pytest.mark.unit
def test_free_delivery_threshold_wins_over_slabs(settings):
    assert compute_delivery_charge(12.0, Decimal("500"), settings) == Decimal("0")
    assert compute_delivery_charge(12.0, Decimal("499.99"), settings) == Decimal("90")


@pytest.mark.unit
def test_last_matching_slab_is_used_even_when_unsorted():
    settings = make_delivery_settings(
        free_distance_limit_km=0.0,
        slabs=(
            DeliverySlab(10, 20, Decimal("90")),
            DeliverySlab(0, 5, Decimal("30")),
            DeliverySlab(5, 10, Decimal("60")),
        ),
    )
    assert compute_delivery_charge(7.0, Decimal("100"), settings) == Decimal("60")
    assert compute_delivery_charge(2.0, Decimal("100"), settings) == Decimal("30")


@pytest.mark.unit
def test_distance_below_every_slab_is_free():
    settings = make_delivery_settings(
        free_distance_limit_km=1.0,
        slabs=(DeliverySlab(3, 10, Decimal("40")),),
    )
    assert compute_delivery_charge(2.0, Decimal("100"), settings) == Decimal("0")


@pytest.mark.unit
def test_no_slabs_is_free():
    settings = make_delivery_settings(slabs=())
    assert compute_delivery_charge(12.0, Decimal("100"), settings) == Decimal("0")


@pytest.mark.unit
def test_charge_never_negative(settings):
    for km in (0, 3, 6, 11, 25):
        assert compute_delivery_charge(km, Decimal("0"), settings) >= 0


@pytest.mark.unit
def test_ensure_deliverable(settings):
    ensure_deliverable(20.0, settings)
    with pytest.raises(DistanceExceeded) as exc:
        ensure_deliverable(20.001, settings)
    assert exc.value.max_distance_km == 20.0
    assert exc.value.to_dict()["code"] == "DISTANCE_EXCEEDED"


@pytest.mark.unit
def test_slab_validation():
    with pytest.raises(ValueError):
        DeliverySlab(10, 5, Decimal("30"))
    with pytest.raises(ValueError):
        DeliverySlab(0, 5, Decimal("-1"))


@pytest.mark.unit
def test_settings_built_from_config():
    config = Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        FREE_DISTANCE_LIMIT_KM=3,
        FREE_DELIVERY_THRESHOLD=750,
        MAX_DELIVERY_DISTANCE_KM=15,
        DELIVERY_SLABS=[{"min_distance_km": 0, "max_distance_km": 15, "charge": 45}],
    )

    snapshot = delivery_settings_from_config(config)

    assert snapshot.free_distance_limit_km == 3
    assert snapshot.free_delivery_threshold == Decimal("750.00")
    assert snapshot.max_delivery_distance_km == 15
    assert snapshot.slabs == (DeliverySlab(0, 15, Decimal("45")),)


@pytest.mark.unit
def test_replace_delivery_settings_swaps_whole_snapshot():
    original = pricing.get_delivery_settings()
    replacement = make_delivery_settings(max_delivery_distance_km=8.0)
    try:
        pricing.replace_delivery_settings(replacement)
        assert pricing.get_delivery_settings() is replacement
        # The old snapshot is untouched
        assert original.max_delivery_distance_km == 20.0
    finally:
        pricing.replace_delivery_settings(original)
