"""Checkout router: delivery quotes and order placement."""

from fastapi import APIRouter, Depends, Request, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.rate_limit import checkout_limit
from libs.db.session import get_async_db
from services.store_service.clients.cart_client import CartClient, get_cart_client
from services.store_service.routers._helpers import get_distance_resolver
from services.store_service.schemas import (
    CheckoutRequest,
    OrderResponse,
    QuoteRequest,
    QuoteResponse,
)
from services.store_service.services.checkout import compute_quote, create_order
from services.store_service.services.distance import DistanceResolver
from services.store_service.services.geo import Coordinate
from services.store_service.services.pricing import (
    DeliverySettings,
    get_delivery_settings,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/checkout", tags=["store-checkout"])


@router.post("/quote", response_model=QuoteResponse)
@checkout_limit
async def quote_delivery(
    request: Request,
    payload: QuoteRequest,
    resolver: DistanceResolver = Depends(get_distance_resolver),
    delivery: DeliverySettings = Depends(get_delivery_settings),
):
    """Distance and delivery charge for a destination, before ordering."""
    destination = Coordinate(
        latitude=payload.destination.latitude,
        longitude=payload.destination.longitude,
    )
    quote = await compute_quote(
        resolver, delivery.store_location, destination, delivery, payload.subtotal
    )
    return QuoteResponse(
        distance_km=quote.distance_km,
        distance_source=quote.distance_source,
        delivery_charge=quote.delivery_charge,
        max_delivery_distance_km=delivery.max_delivery_distance_km,
        error=quote.error,
    )


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@checkout_limit
async def place_order(
    request: Request,
    payload: CheckoutRequest,
    current_user: AuthUser = Depends(get_current_user),
    cart_client: CartClient = Depends(get_cart_client),
    resolver: DistanceResolver = Depends(get_distance_resolver),
    delivery: DeliverySettings = Depends(get_delivery_settings),
    db: AsyncSession = Depends(get_async_db),
):
    """Create an order from the member's validated cart."""
    cart = await cart_client.get_cart_snapshot(current_user.user_id)
    return await create_order(
        db,
        member_auth_id=current_user.user_id,
        cart=cart,
        address=payload.shipping_address,
        payment_method=payload.payment_method,
        resolver=resolver,
        settings=delivery,
        currency=get_settings().PAYMENT_CURRENCY,
    )
