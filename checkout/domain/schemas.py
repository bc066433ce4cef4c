# checkout/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from checkout.domain.enums import DiscountKind, OrderStatus, PaymentMethod


# --- users ------------------------------------------------------------------

class UserCreate(BaseModel):
    """Schema dla tworzenia użytkownika."""

    name: str = Field(..., min_length=1, max_length=100, description="Imię użytkownika")
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone_number: str | None = Field(None, max_length=30)


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    phone_number: str | None = None
    role: str

    model_config = ConfigDict(from_attributes=True)


# --- products ---------------------------------------------------------------

class ProductOut(BaseModel):
    id: int
    name: str
    sku: str | None = None
    unit_of_measure: str
    price_per_unit: Decimal
    current_price: Decimal
    discount_active: bool
    discount_price: Decimal | None = None
    discount_percentage: Decimal | None = None
    discount_start_date: datetime | None = None
    discount_end_date: datetime | None = None
    stock_quantity: Decimal
    min_order_quantity: Decimal
    is_active: bool


class DiscountIn(BaseModel):
    """
    Rabat podawany jawnie jednym polem: kind = percentage albo fixed.
    kind = null czysci rabat.
    """

    kind: DiscountKind | None = None
    value: Decimal | None = Field(None, gt=0)
    start: datetime | None = None
    end: datetime | None = None


# --- carts ------------------------------------------------------------------

class CartItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: Decimal = Field(..., gt=0, description="Ilość produktu (musi być > 0)")


class CartItemUpdateIn(BaseModel):
    quantity: Decimal = Field(..., gt=0)


class CartItemOut(BaseModel):
    id: int
    product_id: int
    quantity: Decimal
    price_per_unit_at_addition: Decimal
    unit_of_measure_at_addition: str | None = None
    line_item_total: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart_id: int
    user_id: int | None = None
    status: str
    items: List[CartItemOut]
    total: Decimal
    #id koszyka goscia, klient odsyla go w X-Guest-Cart-Id
    guest_cart_id: int | None = None


# --- orders -----------------------------------------------------------------

class PlaceOrderIn(BaseModel):
    """Schema dla tworzenia zamówienia z aktywnego koszyka."""

    delivery_address_id: int = Field(..., gt=0)
    delivery_option_id: int = Field(..., gt=0)
    payment_method: PaymentMethod
    notes: str | None = Field(None, max_length=1000)


class FulfillmentUpdateIn(BaseModel):
    """Admin moze zmienic tylko pola realizacji, nie platnosci."""

    order_status: OrderStatus | None = None
    delivery_tracking_number: str | None = Field(None, max_length=255)
    delivery_service: str | None = Field(None, max_length=255)


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    price_per_unit_at_purchase: Decimal
    unit_of_measure_at_purchase: str | None = None
    quantity: Decimal
    line_item_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderAddressSnapshotOut(BaseModel):
    address_type: str
    recipient_name: str
    phone_number: str | None = None
    address_line1: str
    address_line2: str | None = None
    city: str
    region: str
    country: str
    ghanapost_gps_address: str | None = None
    digital_address_description: str | None = None
    delivery_instructions: str | None = None

    model_config = ConfigDict(from_attributes=True)


class DeliveryOptionOut(BaseModel):
    id: int
    name: str
    cost: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    order_number: str
    customer_id: int
    delivery_address_id: int | None = None
    delivery_option: DeliveryOptionOut
    order_total: Decimal
    payment_method: str
    payment_status: str
    order_status: str
    payment_gateway_transaction_id: str | None = None
    notes: str | None = None
    delivery_tracking_number: str | None = None
    delivery_service: str | None = None
    ordered_at: datetime
    dispatched_at: datetime | None = None
    delivered_at: datetime | None = None
    items: List[OrderItemOut]
    address_snapshots: List[OrderAddressSnapshotOut]

    model_config = ConfigDict(from_attributes=True)


class PlaceOrderOut(BaseModel):
    message: str
    data: OrderOut
    authorization_url: str | None = None


class WebhookAckOut(BaseModel):
    message: str
