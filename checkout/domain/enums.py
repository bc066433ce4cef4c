# checkout/domain/enums.py
from enum import Enum


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class CartStatus(str, Enum):
    ACTIVE = "active"
    CONVERTED = "converted"
    ABANDONED = "abandoned"


class PaymentMethod(str, Enum):
    MOBILE_MONEY = "Mobile Money"
    BANK_TRANSFER = "Bank Transfer"
    CASH_ON_DELIVERY = "Cash on Delivery"
    CARD = "Card"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PENDING_GATEWAY_PAYMENT = "pending_gateway_payment"
    PAID = "paid"
    FAILED = "failed"
    AMOUNT_MISMATCH = "amount_mismatch"
    REFUNDED = "refunded"
    PARTIALLY_PAID = "partially_paid"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class AddressType(str, Enum):
    SHIPPING = "Shipping"
    BILLING = "Billing"


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
