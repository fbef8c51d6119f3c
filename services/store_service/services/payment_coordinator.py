"""Online payment lifecycle for store orders.

An order can have many payment attempts (retries), each backed by one
gateway order. The order status only ever moves through the state machine
with the ``payment`` actor, and a verified payment never confirms an order
on its own; the store still has to accept it.
"""

import json
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

from libs.common.currency import rupees_to_paise
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service.exceptions import (
    ConflictingTransition,
    InvalidTransition,
    PaymentConflict,
    PaymentInitializationError,
    ProviderUnavailable,
    VerificationFailed,
)
from services.store_service.models import (
    Order,
    OrderStatus,
    PaymentAttempt,
    PaymentAttemptStatus,
    PaymentMethod,
    PaymentStatus,
    TransitionActor,
)
from services.store_service.services import order_state
from services.store_service.services.order_ops import (
    commit_order_change,
    get_order,
    get_order_for_update,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

PROVIDER_NAME = "razorpay"
PAYABLE_STATUSES = frozenset({OrderStatus.CREATED, OrderStatus.PAYMENT_PENDING})


class PaymentGateway(Protocol):
    key_id: str

    async def create_order(
        self, amount_paise: int, currency: str, receipt: str, notes: Optional[dict] = None
    ): ...

    def verify_payment_signature(
        self, provider_order_id: str, payment_id: str, signature: str
    ) -> bool: ...

    def verify_webhook_signature(self, raw_body: bytes, signature: str) -> bool: ...


@dataclass(frozen=True)
class PaymentSession:
    """What the storefront needs to open the gateway checkout widget."""

    session_id: uuid.UUID
    order_id: uuid.UUID
    order_number: str
    provider: str
    provider_order_id: str
    key_id: str
    amount: int  # in paise
    currency: str
    attempt_number: int


def _ensure_payable(order: Order) -> None:
    if order.payment_method is not PaymentMethod.ONLINE:
        raise InvalidTransition(
            order.status,
            OrderStatus.PAYMENT_PENDING,
            "Online payment is not available for cash-on-delivery orders",
        )
    if order.payment_status is PaymentStatus.PAID or order.status not in PAYABLE_STATUSES:
        raise InvalidTransition(
            order.status,
            OrderStatus.PAYMENT_PENDING,
            f"Order in {order.status.value} cannot start a payment",
        )


# ---------------------------------------------------------------------------
# Initialization / retry
# ---------------------------------------------------------------------------


async def init_payment(
    db: AsyncSession,
    gateway: PaymentGateway,
    order_id: uuid.UUID,
    *,
    member_auth_id: Optional[str] = None,
) -> PaymentSession:
    """Open a new payment attempt for an online order.

    Also used for retries: every call creates a fresh attempt with its own
    gateway order. The gateway is called without holding the order lock; the
    order is then locked and re-checked before the attempt is recorded.
    """
    order = await get_order(db, order_id, member_auth_id=member_auth_id)
    _ensure_payable(order)

    attempt_number = len(order.payment_attempts) + 1
    receipt = PaymentAttempt.build_receipt(order.order_number, attempt_number)
    amount = order.total_amount
    currency = order.currency

    try:
        gateway_order = await gateway.create_order(
            amount_paise=rupees_to_paise(amount),
            currency=currency,
            receipt=receipt,
            notes={"order_id": str(order_id), "order_number": order.order_number},
        )
    except ProviderUnavailable as e:
        logger.error("Payment init failed for order %s: %s", order.order_number, e.message)
        raise PaymentInitializationError(
            "Could not start the payment, please try again",
            order_id=str(order_id),
        ) from e

    order = await get_order_for_update(db, order_id)
    try:
        _ensure_payable(order)
    except InvalidTransition as e:
        await db.rollback()
        raise ConflictingTransition(
            "Order changed while the payment was being started",
            order_id=str(order_id),
            provider_order_id=gateway_order.id,
        ) from e
    if any(a.attempt_number == attempt_number for a in order.payment_attempts):
        await db.rollback()
        raise ConflictingTransition(
            "Another payment attempt was started for this order",
            order_id=str(order_id),
        )

    for previous in order.payment_attempts:
        if previous.status is PaymentAttemptStatus.CREATED:
            previous.status = PaymentAttemptStatus.ABANDONED
            previous.failure_reason = f"superseded by attempt {attempt_number}"

    attempt = PaymentAttempt(
        attempt_number=attempt_number,
        receipt=receipt,
        provider=PROVIDER_NAME,
        provider_order_id=gateway_order.id,
        amount=amount,
        currency=currency,
        status=PaymentAttemptStatus.CREATED,
    )
    order.payment_attempts.append(attempt)

    if order.status is OrderStatus.CREATED:
        order_state.apply_transition(
            order,
            OrderStatus.PAYMENT_PENDING,
            TransitionActor.PAYMENT,
            performed_by=member_auth_id,
            note=f"payment attempt {attempt_number}",
        )
    order.payment_status = PaymentStatus.UNPAID

    await commit_order_change(db, order)
    logger.info(
        "Payment attempt %s opened for order %s (gateway order %s)",
        attempt_number,
        order.order_number,
        gateway_order.id,
    )

    return PaymentSession(
        session_id=attempt.id,
        order_id=order.id,
        order_number=order.order_number,
        provider=PROVIDER_NAME,
        provider_order_id=gateway_order.id,
        key_id=gateway.key_id,
        amount=rupees_to_paise(amount),
        currency=currency,
        attempt_number=attempt_number,
    )


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


async def _find_attempt(
    db: AsyncSession, provider_order_id: str
) -> Optional[PaymentAttempt]:
    result = await db.execute(
        select(PaymentAttempt).where(PaymentAttempt.provider_order_id == provider_order_id)
    )
    return result.scalar_one_or_none()


async def _apply_verified_payment(
    db: AsyncSession, attempt: PaymentAttempt, payment_id: str
) -> Order:
    """Record a gateway-verified payment against its order."""
    order = await get_order_for_update(db, attempt.order_id)

    if order.status is OrderStatus.CANCELLED:
        attempt.status = PaymentAttemptStatus.PAID
        attempt.provider_payment_id = payment_id
        attempt.verified_at = utc_now()
        attempt.failure_reason = "captured after the order was cancelled"
        await db.commit()
        logger.error(
            "Payment %s captured for cancelled order %s; refund required",
            payment_id,
            order.order_number,
        )
        raise PaymentConflict(
            "Payment was received for an order that is already cancelled",
            order_id=str(order.id),
            provider_payment_id=payment_id,
        )

    if order.payment_status is PaymentStatus.PAID:
        # Duplicate callback or webhook; nothing to write
        await db.commit()
        logger.info("Order %s already paid, ignoring %s", order.order_number, payment_id)
        return order

    now = utc_now()
    if order_state.can_transition(order.status, OrderStatus.PAID, TransitionActor.PAYMENT):
        order_state.apply_transition(
            order,
            OrderStatus.PAID,
            TransitionActor.PAYMENT,
            performed_by=PROVIDER_NAME,
            note=payment_id,
        )
    else:
        logger.warning(
            "Order %s is %s; recording payment %s without a status change",
            order.order_number,
            order.status.value,
            payment_id,
        )
    order.payment_status = PaymentStatus.PAID
    order.provider_payment_id = payment_id
    order.paid_at = now

    attempt.status = PaymentAttemptStatus.PAID
    attempt.provider_payment_id = payment_id
    attempt.verified_at = now
    attempt.failure_reason = None

    await commit_order_change(db, order)
    logger.info("Order %s paid (%s)", order.order_number, payment_id)
    return order


async def confirm_payment(
    db: AsyncSession,
    gateway: PaymentGateway,
    *,
    order_id: uuid.UUID,
    provider_order_id: str,
    payment_id: str,
    signature: str,
    member_auth_id: Optional[str] = None,
) -> Order:
    """Verify the checkout callback signature, then mark the order paid."""
    if not gateway.verify_payment_signature(provider_order_id, payment_id, signature):
        logger.warning(
            "Rejected payment callback for order %s: bad signature", order_id
        )
        raise VerificationFailed("Payment signature verification failed")

    attempt = await _find_attempt(db, provider_order_id)
    if attempt is None or attempt.order_id != order_id:
        raise VerificationFailed("Payment does not belong to this order")
    if member_auth_id is not None:
        # Ownership check; raises OrderNotFound for someone else's order
        await get_order(db, order_id, member_auth_id=member_auth_id)

    return await _apply_verified_payment(db, attempt, payment_id)


# ---------------------------------------------------------------------------
# Dismissal / failure
# ---------------------------------------------------------------------------


async def cancel_payment(
    db: AsyncSession,
    order_id: uuid.UUID,
    *,
    reason: Optional[str] = None,
    failed: bool = False,
    member_auth_id: Optional[str] = None,
    provider_order_id: Optional[str] = None,
) -> Order:
    """Close open payment attempts after a dismissal or a gateway failure.

    The order keeps its status and can be paid again later. Paid or terminal
    orders are left alone.
    """
    order = await get_order_for_update(db, order_id, member_auth_id=member_auth_id)
    if order.payment_status is PaymentStatus.PAID or order.status.is_terminal:
        await db.commit()
        return order

    attempt_status = PaymentAttemptStatus.FAILED if failed else PaymentAttemptStatus.ABANDONED
    closed = 0
    for attempt in order.payment_attempts:
        if attempt.status is not PaymentAttemptStatus.CREATED:
            continue
        if provider_order_id is not None and attempt.provider_order_id != provider_order_id:
            continue
        attempt.status = attempt_status
        attempt.failure_reason = reason or (
            "payment failed" if failed else "checkout dismissed"
        )
        closed += 1

    # A failure for a superseded attempt leaves the live one alone
    if failed and (closed or provider_order_id is None):
        order.payment_status = PaymentStatus.FAILED

    await commit_order_change(db, order)
    logger.info(
        "Closed %d payment attempt(s) on order %s as %s",
        closed,
        order.order_number,
        attempt_status.value,
    )
    return order


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------


def _payment_entity(payload: dict) -> dict:
    return ((payload.get("payload") or {}).get("payment") or {}).get("entity") or {}


def _order_entity(payload: dict) -> dict:
    return ((payload.get("payload") or {}).get("order") or {}).get("entity") or {}


async def handle_gateway_webhook(
    db: AsyncSession,
    gateway: PaymentGateway,
    raw_body: bytes,
    signature: Optional[str],
) -> str:
    """Process a Razorpay webhook; returns the outcome for the acknowledgement."""
    if not gateway.verify_webhook_signature(raw_body, signature or ""):
        logger.warning("Rejected Razorpay webhook: bad signature")
        raise VerificationFailed("Invalid webhook signature")

    try:
        payload = json.loads(raw_body)
    except ValueError as e:
        raise VerificationFailed("Malformed webhook payload") from e

    event = payload.get("event")
    payment = _payment_entity(payload)
    provider_order_id = payment.get("order_id") or _order_entity(payload).get("id")
    if event not in ("payment.captured", "order.paid", "payment.failed"):
        logger.info("Ignoring Razorpay event %s", event)
        return "ignored"

    attempt = await _find_attempt(db, provider_order_id) if provider_order_id else None
    if attempt is None:
        logger.info("Ignoring Razorpay event %s for unknown order %s", event, provider_order_id)
        return "ignored"

    if event == "payment.failed":
        await cancel_payment(
            db,
            attempt.order_id,
            reason=payment.get("error_description") or "payment failed",
            failed=True,
            provider_order_id=provider_order_id,
        )
        return "failed"

    payment_id = payment.get("id")
    if not payment_id:
        logger.info("Ignoring Razorpay event %s without a payment id", event)
        return "ignored"
    try:
        await _apply_verified_payment(db, attempt, payment_id)
    except PaymentConflict:
        # Acknowledge so the gateway stops retrying; the conflict is logged
        return "conflict"
    return "paid"
