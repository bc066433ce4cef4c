# checkout/services/order_service.py
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session

from checkout.data.models.order import OrderModel
from checkout.data.models.order_address_snapshot import OrderAddressSnapshotModel
from checkout.data.models.order_item import OrderItemModel
from checkout.domain.enums import AddressType, OrderStatus, PaymentMethod, PaymentStatus
from checkout.domain.exceptions import (
    CheckoutError,
    CustomerProfileMissing,
    EmptyCart,
    InvalidSelection,
    OrderAccessDenied,
    OrderNotFound,
    OrderPlacementFailed,
    ProductUnavailable,
)
from checkout.domain.order_number import generate_order_number
from checkout.domain.pricing import money, validate_and_price
from checkout.domain.principal import AuthenticatedPrincipal
from checkout.repos.cart_repo import CartRepo
from checkout.repos.customer_repo import CustomerRepo
from checkout.repos.order_repo import OrderRepo
from checkout.repos.product_repo import ProductRepo
from checkout.repos.user_repo import UserRepo
from checkout.services.notification_service import NotificationService
from checkout.services.payment_gateway import PaystackClient
from checkout.utils.settings import FRONTEND_URL, ORDER_NUMBER_MAX_ATTEMPTS
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PlacedOrder:
    order: OrderModel
    message: str
    authorization_url: str | None = None


class OrderService:
    """
    Zamiana koszyka w zamowienie.

    Jedna transakcja: zamowienie + pozycje + 2 snapshoty adresu + zdjecie ze stanu
    + usuniecie koszyka. Bramka platnosci wolana dopiero po commit.
    """

    def __init__(
        self,
        db: Session,
        gateway: PaystackClient | None = None,
        notification_service: NotificationService | None = None,
        order_number_generator: Callable[[], str] = generate_order_number,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.product_repo = ProductRepo(db)
        self.customer_repo = CustomerRepo(db)
        self.user_repo = UserRepo(db)
        self.gateway = gateway or PaystackClient()
        self.notification_service = notification_service or NotificationService()
        self.order_number_generator = order_number_generator

    #commands
    def place_order(
        self,
        principal: AuthenticatedPrincipal,
        delivery_address_id: int,
        delivery_option_id: int,
        payment_method: PaymentMethod,
        notes: str | None = None,
    ) -> PlacedOrder:
        """
        Use Case: zlozenie zamowienia z aktywnego koszyka.

        Preconditions (no mutation before these pass):
        - user has a customer profile
        - active cart with at least one line
        - address belongs to the customer, delivery option exists and is active

        Raises the rejection of the first cart line that fails pricing, or
        OrderPlacementFailed for anything unexpected; both leave the database
        exactly as it was.
        """
        payment_method = PaymentMethod(payment_method)

        user = self.user_repo.get_user(principal.user_id)
        customer = self.customer_repo.get_customer_by_user(principal.user_id)
        if user is None or customer is None:
            raise CustomerProfileMissing(principal.user_id)

        cart = self.cart_repo.get_active_cart_by_user(principal.user_id)
        if cart is None or not cart.items:
            raise EmptyCart(principal.user_id)

        address = self.customer_repo.get_address_for_customer(delivery_address_id, customer.id)
        delivery_option = self.customer_repo.get_active_delivery_option(delivery_option_id)
        if address is None or delivery_option is None:
            raise InvalidSelection(
                delivery_address_id=delivery_address_id,
                delivery_option_id=delivery_option_id,
            )

        try:
            order = self._assemble(user, customer, cart, address, delivery_option, payment_method, notes)
            self.repo.commit()
        except CheckoutError as e:
            self.repo.rollback()
            logger.warning(f"Order placement rejected for user {principal.user_id}: {e}")
            raise
        except Exception as e:
            self.repo.rollback()
            logger.exception(f"Order placement failed for user {principal.user_id}")
            raise OrderPlacementFailed(e) from e

        order_id, order_number, order_total = order.id, order.order_number, order.order_total
        logger.info(
            f"Order {order_number} placed by user {user.id}, total {order_total}, "
            f"payment method {payment_method.value}"
        )
        self.notification_service.send_order_notification(user.id, order_number)

        if payment_method == PaymentMethod.CASH_ON_DELIVERY:
            return PlacedOrder(
                order=self.repo.get_order(order_id),
                message="Order placed successfully (Cash on Delivery)!",
            )

        return self._start_gateway_payment(order_id, order_number, order_total, user.email)

    def _assemble(self, user, customer, cart, address, delivery_option, payment_method, notes) -> OrderModel:
        lines = list(cart.items)
        products = self.product_repo.get_products_for_update(line.product_id for line in lines)

        #1. walidacja + cena, stop na pierwszym bledzie
        priced = [validate_and_price(line, products.get(line.product_id)) for line in lines]

        #2-3. sumy
        sub_total = sum((p.line_total for p in priced), Decimal("0.00"))
        order_total = money(sub_total + Decimal(str(delivery_option.cost)))

        #4. zamowienie
        initial_payment_status = (
            PaymentStatus.UNPAID
            if payment_method == PaymentMethod.CASH_ON_DELIVERY
            else PaymentStatus.PENDING_GATEWAY_PAYMENT
        )
        order = self.repo.add_order(
            OrderModel(
                order_number=self._next_order_number(),
                customer_id=customer.id,
                delivery_address_id=address.id,
                delivery_option_id=delivery_option.id,
                order_total=order_total,
                payment_method=payment_method.value,
                payment_status=initial_payment_status.value,
                order_status=OrderStatus.PENDING.value,
                notes=notes,
                ordered_at=datetime.now(timezone.utc),
            )
        )

        #5. pozycje zamowienia (snapshot ceny / nazwy / jednostki)
        self.repo.add_items(
            [
                OrderItemModel(
                    order_id=order.id,
                    product_id=p.product_id,
                    product_name=p.product_name,
                    price_per_unit_at_purchase=p.unit_price,
                    unit_of_measure_at_purchase=p.unit_of_measure,
                    quantity=p.quantity,
                    line_item_total=p.line_total,
                )
                for p in priced
            ]
        )

        #6. stan magazynowy - warunkowy update, rownolegle zamowienie moglo nas wyprzedzic
        for p in priced:
            if not self.product_repo.decrement_stock_if_sufficient(p.product_id, p.quantity):
                raise ProductUnavailable(
                    product_id=p.product_id,
                    product_name=p.product_name,
                    requested=str(p.quantity),
                )

        #7. snapshoty adresu, billing = shipping
        self.repo.add_address_snapshots(
            [
                self._address_snapshot(order, address, user, AddressType.SHIPPING),
                self._address_snapshot(order, address, user, AddressType.BILLING),
            ]
        )

        #8. koszyk
        self.cart_repo.delete_cart(cart)
        self.db.flush()
        return order

    def _next_order_number(self) -> str:
        for attempt in range(1, ORDER_NUMBER_MAX_ATTEMPTS + 1):
            candidate = self.order_number_generator()
            if not self.repo.order_number_exists(candidate):
                return candidate
            logger.warning(f"Order number collision on {candidate} (attempt {attempt})")
        raise OrderPlacementFailed("Could not generate a unique order number")

    @staticmethod
    def _address_snapshot(order, address, user, address_type: AddressType) -> OrderAddressSnapshotModel:
        return OrderAddressSnapshotModel(
            order_id=order.id,
            address_type=address_type.value,
            recipient_name=user.name,
            phone_number=user.phone_number,
            address_line1=address.address_line1,
            address_line2=address.address_line2,
            city=address.city,
            region=address.region,
            country=address.country,
            ghanapost_gps_address=address.ghanapost_gps_address,
            digital_address_description=address.digital_address_description,
            delivery_instructions=address.delivery_instructions,
        )

    def _start_gateway_payment(self, order_id: int, order_number: str, order_total, email: str) -> PlacedOrder:
        callback_url = f"{FRONTEND_URL.rstrip('/')}/payment/callback?order_ref={order_number}"

        try:
            session = self.gateway.initialize_session(order_total, email, order_number, callback_url)
        except Exception as e:
            #zamowienie zostaje (audyt), ale jest martwe
            logger.error(f"Payment initialization failed for order {order_number}: {e}. Marking failed/cancelled.")
            self.repo.update_order(
                order_id,
                {
                    "payment_status": PaymentStatus.FAILED.value,
                    "order_status": OrderStatus.CANCELLED.value,
                },
            )
            self.repo.commit()
            return PlacedOrder(
                order=self.repo.get_order(order_id),
                message="Order placed, but payment initiation failed. Please try again or choose Cash on Delivery.",
            )

        try:
            self.repo.update_order(
                order_id,
                {
                    "payment_gateway_transaction_id": session.reference,
                    "payment_details": {
                        "authorization_url": session.authorization_url,
                        "access_code": session.access_code,
                    },
                },
            )
            self.repo.commit()
        except Exception:
            #webhook i tak znajdzie zamowienie po order_number
            self.repo.rollback()
            logger.exception(f"Could not store gateway session for order {order_number}")

        return PlacedOrder(
            order=self.repo.get_order(order_id),
            message="Order placed. Redirecting to payment gateway.",
            authorization_url=session.authorization_url,
        )

    #query
    def get_order(self, principal: AuthenticatedPrincipal, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        if not principal.is_admin and order.customer.user_id != principal.user_id:
            raise OrderAccessDenied(order_id, principal.user_id)

        return order

    #admin
    def update_fulfillment(
        self,
        principal: AuthenticatedPrincipal,
        order_id: int,
        order_status: OrderStatus | None = None,
        delivery_tracking_number: str | None = None,
        delivery_service: str | None = None,
    ) -> OrderModel:
        """
        Only fulfillment fields can change after placement. Payment fields are
        owned by the webhook handler.
        """
        if not principal.is_admin:
            raise OrderAccessDenied(order_id, principal.user_id)

        order = self.repo.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        now = datetime.now(timezone.utc)
        if order_status is not None:
            order_status = OrderStatus(order_status)
            order.order_status = order_status.value
            if order_status == OrderStatus.SHIPPED and order.dispatched_at is None:
                order.dispatched_at = now
            if order_status == OrderStatus.DELIVERED and order.delivered_at is None:
                order.delivered_at = now
        if delivery_tracking_number is not None:
            order.delivery_tracking_number = delivery_tracking_number
        if delivery_service is not None:
            order.delivery_service = delivery_service

        self.repo.commit()
        logger.info(f"Order {order.order_number} fulfillment updated by admin {principal.user_id}")
        return self.repo.get_order(order_id)

    def delete_order(self, principal: AuthenticatedPrincipal, order_id: int) -> None:
        if not principal.is_admin:
            raise OrderAccessDenied(order_id, principal.user_id)

        order = self.repo.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        order_number = order.order_number
        try:
            self.repo.delete_order(order)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            logger.exception(f"Order {order_number} deletion failed")
            raise

        logger.info(f"Order {order_number} deleted by admin {principal.user_id}")
