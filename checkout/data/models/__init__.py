#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w Base.metadata

from checkout.data.models.user import UserModel
from checkout.data.models.customer import CustomerModel
from checkout.data.models.address import AddressModel
from checkout.data.models.delivery_option import DeliveryOptionModel
from checkout.data.models.product import ProductModel
from checkout.data.models.cart import CartModel
from checkout.data.models.cart_item import CartItemModel
from checkout.data.models.order import OrderModel
from checkout.data.models.order_item import OrderItemModel
from checkout.data.models.order_address_snapshot import OrderAddressSnapshotModel

__all__ = [
    "UserModel",
    "CustomerModel",
    "AddressModel",
    "DeliveryOptionModel",
    "ProductModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "OrderAddressSnapshotModel",
]
