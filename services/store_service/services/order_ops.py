"""Order operations: locked loads, transitions, COD fast-forward, history.

Every mutation re-reads the order under ``SELECT ... FOR UPDATE`` and commits
through ``commit_order_change``; the mapper's version counter turns a lost
race into ``ConflictingTransition`` instead of a partial write.
"""

import uuid
from typing import Optional, Sequence

from libs.common.logging import get_logger
from services.store_service.exceptions import (
    ConflictingTransition,
    FastForwardInterrupted,
    InvalidTransition,
    OrderNotFound,
    StoreError,
)
from services.store_service.models import (
    Order,
    OrderStatus,
    PaymentAttemptStatus,
    PaymentMethod,
    TransitionActor,
)
from services.store_service.services import order_state
from sqlalchemy import String, func, select, type_coerce, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


async def get_order(
    db: AsyncSession,
    order_id: uuid.UUID,
    *,
    member_auth_id: Optional[str] = None,
) -> Order:
    """Fetch an order, optionally scoped to its owner."""
    query = select(Order).where(Order.id == order_id)
    if member_auth_id is not None:
        query = query.where(Order.member_auth_id == member_auth_id)
    result = await db.execute(query)
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFound(order_id)
    return order


async def get_order_for_update(
    db: AsyncSession,
    order_id: uuid.UUID,
    *,
    member_auth_id: Optional[str] = None,
) -> Order:
    """Fetch an order with a row lock and fresh column values."""
    query = (
        select(Order)
        .where(Order.id == order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    if member_auth_id is not None:
        query = query.where(Order.member_auth_id == member_auth_id)
    result = await db.execute(query)
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFound(order_id)
    return order


async def commit_order_change(db: AsyncSession, order: Order) -> Order:
    """Commit pending changes to ``order``; a stale version is a conflict."""
    # Rollback expires the instance, so capture the key first
    order_id = order.id
    try:
        await db.commit()
    except StaleDataError as e:
        await db.rollback()
        logger.warning("Concurrent update detected on order %s", order_id)
        raise ConflictingTransition(
            "Order was modified by another request; reload and try again",
            order_id=str(order_id),
        ) from e
    return order


async def list_member_orders(db: AsyncSession, member_auth_id: str) -> Sequence[Order]:
    """A customer's visible order history, newest first."""
    result = await db.execute(
        select(Order)
        .where(
            Order.member_auth_id == member_auth_id,
            Order.hidden_by_customer.is_(False),
        )
        .order_by(Order.created_at.desc())
    )
    return result.scalars().all()


async def list_orders(
    db: AsyncSession,
    *,
    status: Optional[OrderStatus] = None,
    limit: int = 100,
    offset: int = 0,
) -> Sequence[Order]:
    """All orders for the admin panel; status filters match legacy rows too."""
    query = select(Order).order_by(Order.created_at.desc()).limit(limit).offset(offset)
    if status is not None:
        stored = [value.lower() for value in OrderStatus.stored_values(status)]
        query = query.where(func.lower(type_coerce(Order.status, String)).in_(stored))
    result = await db.execute(query)
    return result.scalars().all()


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def transition_order(
    db: AsyncSession,
    order_id: uuid.UUID,
    target: OrderStatus | str,
    *,
    actor: TransitionActor,
    performed_by: Optional[str] = None,
    member_auth_id: Optional[str] = None,
    note: Optional[str] = None,
    admin_notes: Optional[str] = None,
) -> Order:
    """Apply one state-machine transition and commit it."""
    order = await get_order_for_update(db, order_id, member_auth_id=member_auth_id)
    previous = order.status
    try:
        order_state.apply_transition(
            order, target, actor, performed_by=performed_by, note=note
        )
    except InvalidTransition:
        await db.rollback()
        raise

    if order.status is OrderStatus.CANCELLED:
        _close_open_attempts(order, "order cancelled")
    if admin_notes is not None:
        order.admin_notes = admin_notes

    await commit_order_change(db, order)
    logger.info(
        "Order %s: %s -> %s by %s (%s)",
        order.order_number,
        previous.value,
        order.status.value,
        actor.value,
        performed_by,
    )
    return order


async def confirm_paid_order(
    db: AsyncSession, order_id: uuid.UUID, *, performed_by: str
) -> Order:
    """Admin confirmation of an online order whose payment was verified."""
    order = await get_order(db, order_id)
    if order.payment_method is not PaymentMethod.ONLINE or order.status is not OrderStatus.PAID:
        raise InvalidTransition(
            order.status,
            OrderStatus.ADMIN_CONFIRMED,
            "Only paid online orders can be confirmed this way",
        )
    return await transition_order(
        db,
        order_id,
        OrderStatus.ADMIN_CONFIRMED,
        actor=TransitionActor.ADMIN,
        performed_by=performed_by,
    )


async def fast_forward_cod(
    db: AsyncSession, order_id: uuid.UUID, *, performed_by: str
) -> Order:
    """Walk a cash-on-delivery order through confirmed, shipped and delivered.

    Each step is validated and committed on its own. When a step fails the
    order keeps the last status it reached and ``FastForwardInterrupted``
    reports where it stopped; nothing is rolled back.
    """
    order = await get_order(db, order_id)
    if order.payment_method is not PaymentMethod.COD:
        raise InvalidTransition(
            order.status,
            OrderStatus.DELIVERED,
            "Fast-forward delivery is only available for cash-on-delivery orders",
        )

    chain = order_state.cod_fast_forward_chain(order.status)
    reached = order.status
    for step in chain:
        try:
            order = await transition_order(
                db,
                order_id,
                step,
                actor=TransitionActor.ADMIN,
                performed_by=performed_by,
                note="cod fast-forward",
            )
        except StoreError as e:
            logger.warning(
                "COD fast-forward of order %s stopped at %s (%s failed: %s)",
                order_id,
                reached.value,
                step.value,
                e.message,
            )
            raise FastForwardInterrupted(reached, step, e) from e
        reached = order.status
    return order


async def cancel_order(
    db: AsyncSession, order_id: uuid.UUID, *, member_auth_id: str
) -> Order:
    """Customer-initiated cancellation before the store confirms the order."""
    return await transition_order(
        db,
        order_id,
        OrderStatus.CANCELLED,
        actor=TransitionActor.CUSTOMER,
        performed_by=member_auth_id,
        member_auth_id=member_auth_id,
    )


def _close_open_attempts(order: Order, reason: str) -> None:
    for attempt in order.payment_attempts:
        if attempt.status is PaymentAttemptStatus.CREATED:
            attempt.status = PaymentAttemptStatus.ABANDONED
            attempt.failure_reason = reason


# ---------------------------------------------------------------------------
# Customer history visibility
# ---------------------------------------------------------------------------


async def hide_order(
    db: AsyncSession, order_id: uuid.UUID, *, member_auth_id: str
) -> Order:
    """Remove an order from the customer's history view (the record stays)."""
    order = await get_order_for_update(db, order_id, member_auth_id=member_auth_id)
    if not order.hidden_by_customer:
        order.hidden_by_customer = True
        await commit_order_change(db, order)
    return order


async def clear_order_history(db: AsyncSession, *, member_auth_id: str) -> int:
    """Hide every visible order of a customer; returns how many were hidden."""
    result = await db.execute(
        update(Order)
        .where(
            Order.member_auth_id == member_auth_id,
            Order.hidden_by_customer.is_(False),
        )
        .values(hidden_by_customer=True, version_id=Order.version_id + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0
