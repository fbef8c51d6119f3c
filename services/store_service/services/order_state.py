"""Order status state machine.

The backend is the only authority on order status. Callers ask for a target
status on behalf of an actor; the pair is checked against that actor's
transition table before anything on the order changes.
"""

from typing import Optional

from libs.common.datetime_utils import utc_now
from services.store_service.exceptions import InvalidTransition
from services.store_service.models import (
    Order,
    OrderStatus,
    OrderStatusEvent,
    TransitionActor,
)

INITIAL_STATUS = OrderStatus.CREATED

# Administrative actions (admin panel).
ADMIN_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.CREATED: frozenset({OrderStatus.ADMIN_CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.PAYMENT_PENDING: frozenset(
        {OrderStatus.ADMIN_CONFIRMED, OrderStatus.CANCELLED}
    ),
    OrderStatus.PAID: frozenset({OrderStatus.ADMIN_CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.ADMIN_CONFIRMED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Customers may only cancel before the store has confirmed the order.
CUSTOMER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.CREATED: frozenset({OrderStatus.CANCELLED}),
    OrderStatus.PAYMENT_PENDING: frozenset({OrderStatus.CANCELLED}),
}

# Driven by the payment coordinator after gateway events.
PAYMENT_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.CREATED: frozenset({OrderStatus.PAYMENT_PENDING, OrderStatus.PAID}),
    OrderStatus.PAYMENT_PENDING: frozenset({OrderStatus.PAID}),
}

_TABLES = {
    TransitionActor.ADMIN: ADMIN_TRANSITIONS,
    TransitionActor.CUSTOMER: CUSTOMER_TRANSITIONS,
    TransitionActor.PAYMENT: PAYMENT_TRANSITIONS,
}

COD_FAST_FORWARD_CHAIN = (
    OrderStatus.ADMIN_CONFIRMED,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)


def allowed_transitions(
    current: OrderStatus | str, actor: TransitionActor = TransitionActor.ADMIN
) -> frozenset[OrderStatus]:
    return _TABLES[actor].get(OrderStatus.parse(current), frozenset())


def can_transition(
    current: OrderStatus | str,
    target: OrderStatus | str,
    actor: TransitionActor = TransitionActor.ADMIN,
) -> bool:
    return OrderStatus.parse(target) in allowed_transitions(current, actor)


def apply_transition(
    order: Order,
    target: OrderStatus | str,
    actor: TransitionActor,
    *,
    performed_by: Optional[str] = None,
    note: Optional[str] = None,
) -> OrderStatusEvent:
    """Move ``order`` to ``target`` or raise ``InvalidTransition``.

    The order is left untouched when the transition is rejected.
    """
    current = OrderStatus.parse(order.status)
    try:
        target = OrderStatus.parse(target)
    except ValueError:
        raise InvalidTransition(current, target, f"Unknown order status: {target!r}")

    if target not in allowed_transitions(current, actor):
        raise InvalidTransition(current, target)

    now = utc_now()
    order.status = target
    if target is OrderStatus.CANCELLED:
        order.cancelled_at = now
    elif target is OrderStatus.DELIVERED:
        order.delivered_at = now

    event = OrderStatusEvent(
        from_status=current.value,
        to_status=target.value,
        actor=actor.value,
        performed_by=performed_by,
        note=note,
        created_at=now,
    )
    order.status_events.append(event)
    return event


def cod_fast_forward_chain(current: OrderStatus | str) -> list[OrderStatus]:
    """Remaining steps of ADMIN_CONFIRMED -> SHIPPED -> DELIVERED from ``current``.

    Raises ``InvalidTransition`` for cancelled orders.
    """
    current = OrderStatus.parse(current)
    if current is OrderStatus.CANCELLED:
        raise InvalidTransition(
            current, OrderStatus.DELIVERED, "Cancelled orders cannot be delivered"
        )
    if current in COD_FAST_FORWARD_CHAIN:
        return list(COD_FAST_FORWARD_CHAIN[COD_FAST_FORWARD_CHAIN.index(current) + 1 :])
    return list(COD_FAST_FORWARD_CHAIN)
