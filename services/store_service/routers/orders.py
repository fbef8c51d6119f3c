"""Store orders router: a member's order history and cancellation."""

import uuid

from fastapi import APIRouter, Depends, Response, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.schemas import OrderHistoryClearResponse, OrderResponse
from services.store_service.services import order_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/orders", tags=["store"])


@router.get("", response_model=list[OrderResponse])
async def list_my_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List the member's orders, newest first. Removed orders are not shown."""
    return await order_ops.list_member_orders(db, current_user.user_id)


@router.post("/clear", response_model=OrderHistoryClearResponse)
async def clear_my_order_history(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Remove every order from the member's history view."""
    hidden = await order_ops.clear_order_history(db, member_auth_id=current_user.user_id)
    return OrderHistoryClearResponse(hidden_count=hidden)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get one of the member's orders."""
    return await order_ops.get_order(db, order_id, member_auth_id=current_user.user_id)


@router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_my_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Cancel an order the store has not confirmed yet."""
    return await order_ops.cancel_order(
        db, order_id, member_auth_id=current_user.user_id
    )


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_history(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Hide an order from the member's history. The order itself is kept."""
    await order_ops.hide_order(db, order_id, member_auth_id=current_user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
