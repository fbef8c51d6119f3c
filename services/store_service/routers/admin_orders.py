"""Admin order management: listing, status changes, confirmation, COD delivery."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.rate_limit import admin_limit
from libs.db.session import get_async_db
from services.store_service.models import OrderStatus, TransitionActor
from services.store_service.schemas import AdminOrderResponse, OrderStatusUpdate
from services.store_service.services import order_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/orders", tags=["admin-store"])


@router.get("", response_model=list[AdminOrderResponse])
@admin_limit
async def list_orders(
    request: Request,
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all orders, optionally filtered by status (legacy names accepted)."""
    order_status = None
    if status_filter:
        try:
            order_status = OrderStatus.parse(status_filter)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Unknown order status: {status_filter}",
            )
    return await order_ops.list_orders(
        db, status=order_status, limit=limit, offset=offset
    )


@router.get("/{order_id}", response_model=AdminOrderResponse)
@admin_limit
async def get_order(
    request: Request,
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Get order details including status history."""
    return await order_ops.get_order(db, order_id)


@router.patch("/{order_id}/status", response_model=AdminOrderResponse)
@admin_limit
async def update_order_status(
    request: Request,
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Move an order to another status allowed by the admin transition table."""
    return await order_ops.transition_order(
        db,
        order_id,
        payload.status,
        actor=TransitionActor.ADMIN,
        performed_by=current_user.user_id,
        note=payload.admin_notes,
        admin_notes=payload.admin_notes,
    )


@router.post("/{order_id}/confirm", response_model=AdminOrderResponse)
@admin_limit
async def confirm_paid_order(
    request: Request,
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Accept a paid online order."""
    return await order_ops.confirm_paid_order(
        db, order_id, performed_by=current_user.user_id
    )


@router.post("/{order_id}/deliver-cod", response_model=AdminOrderResponse)
@admin_limit
async def deliver_cod_order(
    request: Request,
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Mark a cash-on-delivery order delivered, passing through confirmed and shipped."""
    return await order_ops.fast_forward_cod(
        db, order_id, performed_by=current_user.user_id
    )
