# checkout/domain/pricing.py
"""
Price calculation for cart lines and orders.

Everything here is a plain function over the values it is given: no session,
no commits. Services call these at the point of mutation (adding a cart line,
changing a discount, placing an order) instead of relying on model hooks.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from checkout.domain.enums import DiscountKind
from checkout.domain.exceptions import BelowMinimumOrder, InvalidDiscount, ProductUnavailable

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def money(value) -> Decimal:
    """Round to 2 decimal places, half up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount) -> int:
    """GHS 110.00 -> 11000 pesewas."""
    return int((money(amount) * HUNDRED).to_integral_value(rounding=ROUND_HALF_UP))


def line_total(quantity, unit_price) -> Decimal:
    return money(Decimal(str(quantity)) * Decimal(str(unit_price)))


def _as_aware(value: datetime | None) -> datetime | None:
    #sqlite zwraca naive datetime, traktujemy jako UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def discount_is_active(product, now: datetime | None = None) -> bool:
    if product.discount_price is None or Decimal(str(product.discount_price)) <= 0:
        return False

    start = _as_aware(product.discount_start_date)
    end = _as_aware(product.discount_end_date)
    if start is None and end is None:
        return True

    now = now or datetime.now(timezone.utc)
    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False
    return True


def current_price(product, now: datetime | None = None) -> Decimal:
    if discount_is_active(product, now):
        return money(product.discount_price)
    return money(product.price_per_unit)


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    product_name: str
    unit_of_measure: str | None
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal


def validate_and_price(cart_line, product, now: datetime | None = None) -> PricedLine:
    """
    Decide whether ``cart_line`` can be bought from ``product`` right now.

    The price is always re-read from the product; the snapshot stored on the
    cart line is only what the customer saw when adding it.

    Raises:
        ProductUnavailable: product missing, inactive or not enough stock
        BelowMinimumOrder: quantity under the product's minimum
    """
    quantity = Decimal(str(cart_line.quantity))

    if product is None or not product.is_active or Decimal(str(product.stock_quantity)) < quantity:
        raise ProductUnavailable(
            product_id=cart_line.product_id,
            product_name=getattr(product, "name", None),
            requested=str(quantity),
            available=str(product.stock_quantity) if product is not None else None,
        )

    if quantity < Decimal(str(product.min_order_quantity)):
        raise BelowMinimumOrder(
            product_id=product.id,
            product_name=product.name,
            min_order_quantity=product.min_order_quantity,
            unit_of_measure=product.unit_of_measure,
        )

    unit_price = current_price(product, now)
    return PricedLine(
        product_id=product.id,
        product_name=product.name,
        unit_of_measure=product.unit_of_measure,
        quantity=quantity,
        unit_price=unit_price,
        line_total=line_total(quantity, unit_price),
    )


@dataclass(frozen=True)
class Discount:
    """A discount is given either as a percentage or as a fixed price, never both."""

    kind: DiscountKind
    value: Decimal


def apply_discount(
    product,
    discount: Discount | None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> None:
    """
    Set the discount fields on ``product``.

    The percentage and the fixed price are kept in step: whichever one is given
    is authoritative and the other is derived from ``price_per_unit``. A window
    with only one bound, or one that ends before it starts, clears the discount.
    ``discount=None`` clears it as well.
    """
    price = money(product.price_per_unit)

    if discount is None or (start is None) != (end is None) or (start is not None and end < start):
        product.discount_price = None
        product.discount_percentage = None
        product.discount_start_date = None
        product.discount_end_date = None
        return

    value = Decimal(str(discount.value))
    if discount.kind == DiscountKind.PERCENTAGE:
        if value <= 0 or value >= HUNDRED:
            raise InvalidDiscount("Discount percentage must be greater than 0 and less than 100.")
        product.discount_percentage = money(value)
        product.discount_price = money(price * (HUNDRED - value) / HUNDRED)
    elif discount.kind == DiscountKind.FIXED:
        if value <= 0 or value >= price:
            raise InvalidDiscount("The discount price must be greater than 0 and less than the price per unit.")
        product.discount_price = money(value)
        product.discount_percentage = money((price - value) / price * HUNDRED)
    else:
        raise InvalidDiscount(f"Unknown discount kind: {discount.kind}")

    product.discount_start_date = start
    product.discount_end_date = end

