"""Store payments router: Razorpay sessions, verification and webhooks."""

import uuid

from fastapi import APIRouter, Depends, Request
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.rate_limit import payment_limit
from libs.db.session import get_async_db
from services.store_service.clients.razorpay_client import RazorpayClient
from services.store_service.routers._helpers import get_payment_gateway
from services.store_service.schemas import (
    CancelPaymentRequest,
    OrderResponse,
    PaymentCallbackRequest,
    PaymentSessionResponse,
)
from services.store_service.services import payment_coordinator
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store-payments"])


@router.post("/orders/{order_id}/payment", response_model=PaymentSessionResponse)
@payment_limit
async def start_payment(
    request: Request,
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    gateway: RazorpayClient = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_async_db),
):
    """Open a payment session for an online order. Calling again retries."""
    session = await payment_coordinator.init_payment(
        db, gateway, order_id, member_auth_id=current_user.user_id
    )
    return PaymentSessionResponse(
        session_id=session.session_id,
        order_id=session.order_id,
        order_number=session.order_number,
        provider=session.provider,
        provider_order_id=session.provider_order_id,
        key_id=session.key_id,
        amount=session.amount,
        currency=session.currency,
        attempt_number=session.attempt_number,
    )


@router.post("/payments/verify", response_model=OrderResponse)
@payment_limit
async def verify_payment(
    request: Request,
    payload: PaymentCallbackRequest,
    current_user: AuthUser = Depends(get_current_user),
    gateway: RazorpayClient = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_async_db),
):
    """Verify the checkout widget's signed callback and mark the order paid."""
    return await payment_coordinator.confirm_payment(
        db,
        gateway,
        order_id=payload.order_id,
        provider_order_id=payload.razorpay_order_id,
        payment_id=payload.razorpay_payment_id,
        signature=payload.razorpay_signature,
        member_auth_id=current_user.user_id,
    )


@router.post("/orders/{order_id}/cancel-payment", response_model=OrderResponse)
async def cancel_payment(
    order_id: uuid.UUID,
    payload: CancelPaymentRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Record a dismissed or failed checkout. The order stays payable."""
    return await payment_coordinator.cancel_payment(
        db,
        order_id,
        reason=payload.reason,
        failed=payload.failed,
        member_auth_id=current_user.user_id,
    )


@router.post("/payments/webhooks/razorpay")
async def razorpay_webhook(
    request: Request,
    gateway: RazorpayClient = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Razorpay webhook endpoint (no auth; verified by X-Razorpay-Signature).
    """
    raw = await request.body()
    outcome = await payment_coordinator.handle_gateway_webhook(
        db, gateway, raw, request.headers.get("X-Razorpay-Signature")
    )
    return {"received": True, "outcome": outcome}
