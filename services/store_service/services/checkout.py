"""Checkout: delivery quotes and order creation from a cart snapshot."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from libs.common.currency import to_amount
from libs.common.logging import get_logger
from services.store_service.exceptions import DistanceExceeded, EmptyCart
from services.store_service.models import (
    DistanceSource,
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusEvent,
    PaymentMethod,
    PaymentStatus,
    TransitionActor,
)
from services.store_service.schemas import CartSnapshot, CartSnapshotItem, ShippingAddress
from services.store_service.services.distance import DistanceResolver
from services.store_service.services.geo import Coordinate
from services.store_service.services.order_state import INITIAL_STATUS
from services.store_service.services.pricing import (
    DeliverySettings,
    compute_delivery_charge,
    ensure_deliverable,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class DeliveryQuote:
    distance_km: float
    distance_source: DistanceSource
    delivery_charge: Optional[Decimal]
    error: Optional[str] = None


async def compute_quote(
    resolver: DistanceResolver,
    origin: Coordinate,
    destination: Coordinate,
    settings: DeliverySettings,
    subtotal: Decimal,
) -> DeliveryQuote:
    """Distance and delivery charge for a destination.

    Out-of-range destinations are reported through ``error`` rather than raised,
    so the storefront can show the distance alongside the refusal.
    """
    distance = await resolver.resolve(origin, destination)
    try:
        ensure_deliverable(distance.distance_km, settings)
    except DistanceExceeded as e:
        return DeliveryQuote(
            distance_km=distance.distance_km,
            distance_source=distance.source,
            delivery_charge=None,
            error=e.code,
        )

    return DeliveryQuote(
        distance_km=distance.distance_km,
        distance_source=distance.source,
        delivery_charge=compute_delivery_charge(distance.distance_km, subtotal, settings),
    )


def build_order_item(item: CartSnapshotItem, position: int) -> OrderItem:
    """Copy a cart line into an order line, computing tax and line subtotal.

    Tax-inclusive prices already contain the tax; otherwise it is added on top.
    """
    unit_price = to_amount(item.unit_price)
    gross = unit_price * item.quantity
    rate = Decimal(item.tax_rate_percent)

    if item.tax_inclusive:
        tax_amount = to_amount(gross - gross * HUNDRED / (HUNDRED + rate))
        subtotal = to_amount(gross)
    else:
        tax_amount = to_amount(gross * rate / HUNDRED)
        subtotal = to_amount(gross + tax_amount)

    return OrderItem(
        position=position,
        product_id=item.product_id,
        variant_id=item.variant_id,
        name=item.name,
        unit_price=unit_price,
        quantity=item.quantity,
        tax_rate_percent=rate,
        tax_inclusive=item.tax_inclusive,
        tax_amount=tax_amount,
        subtotal_amount=subtotal,
    )


async def create_order(
    db: AsyncSession,
    *,
    member_auth_id: str,
    cart: CartSnapshot,
    address: ShippingAddress,
    payment_method: PaymentMethod,
    resolver: DistanceResolver,
    settings: DeliverySettings,
    currency: str = "INR",
) -> Order:
    """Create an order in ``CREATED`` from a validated cart snapshot.

    The distance precondition is checked before anything is written; the
    order, its lines and its first history event are committed together.
    """
    if not cart.items:
        raise EmptyCart("Your cart is empty")

    destination = Coordinate(
        latitude=address.location.latitude, longitude=address.location.longitude
    )
    distance = await resolver.resolve(settings.store_location, destination)
    ensure_deliverable(distance.distance_km, settings)

    items = [build_order_item(item, position) for position, item in enumerate(cart.items)]
    subtotal = to_amount(sum((item.subtotal_amount for item in items), Decimal("0")))
    delivery_charge = compute_delivery_charge(distance.distance_km, subtotal, settings)

    order = Order(
        order_number=Order.generate_order_number(),
        member_auth_id=member_auth_id,
        customer_name=address.name,
        customer_phone=address.phone,
        subtotal_amount=subtotal,
        delivery_charge_amount=delivery_charge,
        total_amount=subtotal + delivery_charge,
        currency=currency,
        payment_method=payment_method,
        payment_status=PaymentStatus.UNPAID,
        status=INITIAL_STATUS,
        shipping_address=address.model_dump(exclude={"location"}),
        delivery_latitude=destination.latitude,
        delivery_longitude=destination.longitude,
        distance_km=distance.distance_km,
        distance_source=distance.source.value,
        items=items,
        status_events=[
            OrderStatusEvent(
                from_status=None,
                to_status=OrderStatus.CREATED.value,
                actor=TransitionActor.CUSTOMER.value,
                performed_by=member_auth_id,
            )
        ],
        payment_attempts=[],
    )
    db.add(order)
    await db.commit()

    logger.info(
        "Created order %s for %s (%s, total=%s, distance=%.3f km via %s)",
        order.order_number,
        member_auth_id,
        payment_method.value,
        order.total_amount,
        distance.distance_km,
        distance.source.value,
    )
    return order
