"""Pydantic schemas for store service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from services.store_service.models import (
    DistanceSource,
    OrderStatus,
    PaymentAttemptStatus,
    PaymentMethod,
    PaymentStatus,
)

# ============================================================================
# LOCATION SCHEMAS
# ============================================================================


class CoordinateIn(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ShippingAddress(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    street: str = Field(..., min_length=1, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: str = Field("India", max_length=100)
    location: CoordinateIn

    @field_validator("name", "street")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class GeocodeResultResponse(BaseModel):
    latitude: float
    longitude: float
    display_name: str


class ParsedAddressResponse(BaseModel):
    street: str
    city: str
    state: str
    zip_code: str
    country: str
    title: str
    full: Optional[str] = None


class ReverseGeocodeResponse(BaseModel):
    latitude: float
    longitude: float
    display_name: Optional[str] = None
    address: Optional[ParsedAddressResponse] = None


# ============================================================================
# CART SNAPSHOT (from the cart service)
# ============================================================================


class CartSnapshotItem(BaseModel):
    product_id: str
    variant_id: Optional[str] = None
    name: str
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., gt=0)
    tax_rate_percent: Decimal = Field(Decimal("0"), ge=0, le=100)
    tax_inclusive: bool = True


class CartSnapshot(BaseModel):
    items: list[CartSnapshotItem] = []


# ============================================================================
# CHECKOUT SCHEMAS
# ============================================================================


class QuoteRequest(BaseModel):
    destination: CoordinateIn
    subtotal: Decimal = Field(..., ge=0)


class QuoteResponse(BaseModel):
    distance_km: float
    distance_source: DistanceSource
    delivery_charge: Optional[Decimal] = None
    max_delivery_distance_km: float
    error: Optional[str] = None


class CheckoutRequest(BaseModel):
    shipping_address: ShippingAddress
    payment_method: PaymentMethod


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: str
    variant_id: Optional[str]
    name: str
    unit_price: Decimal
    quantity: int
    tax_rate_percent: Decimal
    tax_inclusive: bool
    tax_amount: Decimal
    subtotal_amount: Decimal


class OrderStatusEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    from_status: Optional[str]
    to_status: str
    actor: str
    performed_by: Optional[str]
    note: Optional[str]
    created_at: datetime


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus

    customer_name: str
    customer_phone: Optional[str]
    shipping_address: dict
    delivery_latitude: float
    delivery_longitude: float
    distance_km: float
    distance_source: str

    subtotal_amount: Decimal
    delivery_charge_amount: Decimal
    total_amount: Decimal
    currency: str

    provider_payment_id: Optional[str]
    paid_at: Optional[datetime]
    delivered_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    items: list[OrderItemResponse] = []


class PaymentAttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    attempt_number: int
    receipt: str
    provider_order_id: str
    provider_payment_id: Optional[str]
    status: PaymentAttemptStatus
    failure_reason: Optional[str]
    created_at: datetime


class AdminOrderResponse(OrderResponse):
    member_auth_id: str
    admin_notes: Optional[str]
    hidden_by_customer: bool
    status_events: list[OrderStatusEventResponse] = []
    payment_attempts: list[PaymentAttemptResponse] = []


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    admin_notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return OrderStatus.parse(v)


class OrderHistoryClearResponse(BaseModel):
    hidden_count: int


# ============================================================================
# PAYMENT SCHEMAS
# ============================================================================


class PaymentSessionResponse(BaseModel):
    session_id: uuid.UUID
    order_id: uuid.UUID
    order_number: str
    provider: str
    provider_order_id: str
    key_id: Optional[str]
    amount: int  # in paise
    currency: str
    attempt_number: int


class PaymentCallbackRequest(BaseModel):
    """Checkout handler payload, field names as issued by Razorpay."""

    order_id: uuid.UUID
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)


class CancelPaymentRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
    failed: bool = False
