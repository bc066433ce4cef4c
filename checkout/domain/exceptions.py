# checkout/domain/exceptions.py
"""
Rejections raised by the checkout core.

Every error carries a human readable message and a ``details`` dict with the
ids involved, so routers can turn it into a JSON body without re-deriving
context.
"""


class CheckoutError(Exception):
    """Base class for all checkout errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


# --- order placement --------------------------------------------------------

class CustomerProfileMissing(CheckoutError):
    def __init__(self, user_id: int):
        super().__init__(
            "Customer profile not found. Please complete your customer profile before placing an order.",
            details={"user_id": user_id},
        )
        self.user_id = user_id


class EmptyCart(CheckoutError):
    def __init__(self, user_id: int):
        super().__init__(
            "Your cart is empty. Please add items before placing an order.",
            details={"user_id": user_id},
        )
        self.user_id = user_id


class InvalidSelection(CheckoutError):
    """Address does not belong to the customer or delivery option is missing/inactive."""

    def __init__(self, message: str = "Invalid address or delivery option provided.", **details):
        super().__init__(message, details=details)


class ProductUnavailable(CheckoutError):
    def __init__(self, product_id: int, product_name: str | None = None, requested=None, available=None):
        label = f"'{product_name}'" if product_name else str(product_id)
        super().__init__(
            f"Product {label} is out of stock or unavailable for the requested quantity.",
            details={"product_id": product_id, "requested": requested, "available": available},
        )
        self.product_id = product_id


class BelowMinimumOrder(CheckoutError):
    def __init__(self, product_id: int, product_name: str, min_order_quantity, unit_of_measure: str | None = None):
        unit = f" {unit_of_measure}" if unit_of_measure else ""
        super().__init__(
            f"Minimum order quantity for '{product_name}' is {min_order_quantity}{unit}.",
            details={"product_id": product_id, "min_order_quantity": str(min_order_quantity)},
        )
        self.product_id = product_id
        self.min_order_quantity = min_order_quantity


class OrderPlacementFailed(CheckoutError):
    """Unexpected failure inside the placement transaction. Nothing was committed."""

    def __init__(self, cause: Exception | str):
        super().__init__(
            "Failed to place order. Please try again.",
            details={"cause": str(cause)},
        )
        self.cause = cause


# --- orders -----------------------------------------------------------------

class OrderNotFound(CheckoutError):
    def __init__(self, order_ref):
        super().__init__(f"Order {order_ref} not found", details={"order": order_ref})
        self.order_ref = order_ref


class OrderAccessDenied(CheckoutError):
    def __init__(self, order_id: int, user_id: int):
        super().__init__(
            "Unauthorized to access this order.",
            details={"order_id": order_id, "user_id": user_id},
        )


# --- cart -------------------------------------------------------------------

class CartNotFound(CheckoutError):
    def __init__(self):
        super().__init__("No active cart found.")


class CartAccessDenied(CheckoutError):
    def __init__(self, message: str = "Unauthorized to modify this cart."):
        super().__init__(message)


class CartLineNotFound(CheckoutError):
    def __init__(self, item_id: int):
        super().__init__(f"Cart item {item_id} not found", details={"item_id": item_id})
        self.item_id = item_id


# --- catalog / payments -----------------------------------------------------

class ProductNotFound(CheckoutError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found", details={"product_id": product_id})
        self.product_id = product_id


class InvalidDiscount(CheckoutError):
    pass


class PaymentGatewayError(CheckoutError):
    """Gateway unreachable, timed out, or answered with ``status: false``."""

    def __init__(self, message: str, reference: str | None = None, response_body=None):
        super().__init__(message, details={"reference": reference, "response_body": response_body})
        self.reference = reference
