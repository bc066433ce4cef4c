from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError

from checkout.data.models import (
    CartItemModel,
    CartModel,
    OrderAddressSnapshotModel,
    OrderItemModel,
    OrderModel,
    ProductModel,
)
from checkout.domain.enums import OrderStatus, PaymentMethod, PaymentStatus, UserRole
from checkout.domain.exceptions import (
    BelowMinimumOrder,
    CustomerProfileMissing,
    EmptyCart,
    InvalidSelection,
    OrderAccessDenied,
    OrderNotFound,
    OrderPlacementFailed,
    ProductUnavailable,
)
from checkout.domain.principal import AuthenticatedPrincipal
from checkout.services.order_service import OrderService


@pytest.fixture
def service(db, gateway, notifications):
    return OrderService(db, gateway=gateway, notification_service=notifications)


def place(service, ctx, method=PaymentMethod.CASH_ON_DELIVERY, **kwargs):
    return service.place_order(
        ctx["principal"],
        delivery_address_id=kwargs.pop("address_id", ctx["address"].id),
        delivery_option_id=kwargs.pop("option_id", ctx["option"].id),
        payment_method=method,
        **kwargs,
    )


def counts(db):
    db.expire_all()
    return {
        "orders": db.query(OrderModel).count(),
        "items": db.query(OrderItemModel).count(),
        "snapshots": db.query(OrderAddressSnapshotModel).count(),
        "carts": db.query(CartModel).count(),
        "cart_items": db.query(CartItemModel).count(),
    }


def stock(db, product):
    db.expire_all()
    return db.get(ProductModel, product.id).stock_quantity


def detached_copy(product):
    return ProductModel(**{c.key: getattr(product, c.key) for c in ProductModel.__table__.columns})


class TestPlaceOrderCashOnDelivery:
    def test_two_products_cash_on_delivery(self, db, factory, service, gateway, notifications):
        #2 x 50.00 + 1 x 30.00 + dostawa 10.00
        ctx = factory.checkout_ready(lines=[("50.00", "10", 2), ("30.00", "5", 1)], delivery_cost="10.00")

        placed = place(service, ctx, notes="Leave at the gate")
        order = placed.order

        assert placed.message == "Order placed successfully (Cash on Delivery)!"
        assert placed.authorization_url is None
        assert order.order_total == Decimal("140.00")
        assert order.payment_status == PaymentStatus.UNPAID.value
        assert order.order_status == OrderStatus.PENDING.value
        assert order.payment_method == PaymentMethod.CASH_ON_DELIVERY.value
        assert order.notes == "Leave at the gate"
        assert order.order_number.startswith("MC-ORD-")

        assert [(i.quantity, i.price_per_unit_at_purchase, i.line_item_total) for i in order.items] == [
            (Decimal("2.00"), Decimal("50.00"), Decimal("100.00")),
            (Decimal("1.00"), Decimal("30.00"), Decimal("30.00")),
        ]
        assert stock(db, ctx["products"][0]) == Decimal("8.00")
        assert stock(db, ctx["products"][1]) == Decimal("4.00")
        assert counts(db)["carts"] == 0
        assert counts(db)["cart_items"] == 0
        assert gateway.init_calls == []
        assert notifications.orders == [(ctx["user"].id, order.order_number)]

    def test_address_snapshots_copy_address_and_user(self, db, factory, service):
        ctx = factory.checkout_ready()
        order = place(service, ctx).order

        snapshots = {s.address_type: s for s in order.address_snapshots}
        assert set(snapshots) == {"Shipping", "Billing"}
        for snapshot in snapshots.values():
            assert snapshot.recipient_name == ctx["user"].name
            assert snapshot.phone_number == ctx["user"].phone_number
            assert snapshot.address_line1 == "7 Ring Road Central"
            assert snapshot.ghanapost_gps_address == "GA-183-8164"

        #pozniejsza zmiana adresu nie zmienia historii
        ctx["address"].address_line1 = "1 New Street"
        db.commit()
        db.expire_all()
        reloaded = db.get(OrderModel, order.id)
        assert {s.address_line1 for s in reloaded.address_snapshots} == {"7 Ring Road Central"}

    def test_order_item_snapshot_survives_price_change(self, db, factory, service):
        ctx = factory.checkout_ready()
        order = place(service, ctx).order

        product = db.get(ProductModel, ctx["products"][0].id)
        product.price_per_unit = Decimal("99.00")
        product.name = "Renamed"
        db.commit()

        db.expire_all()
        item = db.get(OrderModel, order.id).items[0]
        assert item.price_per_unit_at_purchase == Decimal("50.00")
        assert item.product_name != "Renamed"

    def test_uses_live_price_not_cart_snapshot(self, db, factory, service):
        ctx = factory.checkout_ready(lines=[("50.00", "10", 2)])
        product = db.get(ProductModel, ctx["products"][0].id)
        product.discount_price = Decimal("45.00")
        db.commit()

        order = place(service, ctx).order

        assert order.items[0].price_per_unit_at_purchase == Decimal("45.00")
        assert order.order_total == Decimal("100.00")


class TestPlaceOrderGateway:
    def test_mobile_money_redirects_to_gateway(self, db, factory, service, gateway):
        ctx = factory.checkout_ready(lines=[("50.00", "10", 2)], delivery_cost="10.00")

        placed = place(service, ctx, method=PaymentMethod.MOBILE_MONEY)
        order = placed.order

        assert placed.message == "Order placed. Redirecting to payment gateway."
        assert placed.authorization_url == f"https://checkout.paystack.test/{order.order_number}"
        assert order.payment_status == PaymentStatus.PENDING_GATEWAY_PAYMENT.value
        assert order.order_status == OrderStatus.PENDING.value
        assert order.payment_gateway_transaction_id == order.order_number
        assert order.payment_details["access_code"] == f"AC_{order.order_number}"

        [call] = gateway.init_calls
        assert call["amount"] == Decimal("110.00")
        assert call["reference"] == order.order_number
        assert call["email"] == ctx["user"].email
        assert call["callback_url"].endswith(f"/payment/callback?order_ref={order.order_number}")

    def test_gateway_failure_keeps_order_as_failed(self, db, factory, service, gateway):
        gateway.fail_init = True
        ctx = factory.checkout_ready()

        placed = place(service, ctx, method=PaymentMethod.CARD)

        assert placed.authorization_url is None
        assert "payment initiation failed" in placed.message
        assert placed.order.payment_status == PaymentStatus.FAILED.value
        assert placed.order.order_status == OrderStatus.CANCELLED.value
        #zamowienie, stan i koszyk zostaja po commit
        assert counts(db)["orders"] == 1
        assert counts(db)["carts"] == 0
        assert stock(db, ctx["products"][0]) == Decimal("8.00")


class TestPlaceOrderPreconditions:
    def test_user_without_customer_profile(self, factory, service):
        user = factory.user()
        option = factory.delivery_option()
        with pytest.raises(CustomerProfileMissing):
            service.place_order(AuthenticatedPrincipal(user.id), 1, option.id, PaymentMethod.CASH_ON_DELIVERY)

    def test_empty_cart(self, db, factory, service):
        user = factory.user()
        customer = factory.customer(user)
        address = factory.address(customer)
        option = factory.delivery_option()
        factory.cart(user, [])

        with pytest.raises(EmptyCart):
            service.place_order(AuthenticatedPrincipal(user.id), address.id, option.id, PaymentMethod.CASH_ON_DELIVERY)
        assert counts(db)["orders"] == 0

    def test_no_cart_at_all(self, factory, service):
        user = factory.user()
        customer = factory.customer(user)
        address = factory.address(customer)
        option = factory.delivery_option()

        with pytest.raises(EmptyCart):
            service.place_order(AuthenticatedPrincipal(user.id), address.id, option.id, PaymentMethod.CASH_ON_DELIVERY)

    def test_address_of_another_customer(self, factory, service):
        ctx = factory.checkout_ready()
        stranger_address = factory.address(factory.customer())

        with pytest.raises(InvalidSelection):
            place(service, ctx, address_id=stranger_address.id)

    def test_inactive_delivery_option(self, factory, service):
        ctx = factory.checkout_ready()
        inactive = factory.delivery_option(is_active=False)

        with pytest.raises(InvalidSelection):
            place(service, ctx, option_id=inactive.id)


class TestPlaceOrderAtomicity:
    def test_insufficient_stock_rolls_back_everything(self, db, factory, service, notifications):
        #pierwsza linia ok, druga bez stanu
        ctx = factory.checkout_ready(lines=[("50.00", "10", 2), ("30.00", "1", 5)])
        before = counts(db)

        with pytest.raises(ProductUnavailable) as exc:
            place(service, ctx)

        assert exc.value.product_id == ctx["products"][1].id
        assert counts(db) == before
        assert stock(db, ctx["products"][0]) == Decimal("10.00")
        assert stock(db, ctx["products"][1]) == Decimal("1.00")
        assert notifications.orders == []

    def test_stops_on_first_failing_line(self, db, factory, service):
        user = factory.user()
        customer = factory.customer(user)
        address = factory.address(customer)
        option = factory.delivery_option()
        below_min = factory.product(price="10.00", stock="10", min_order="5")
        inactive = factory.product(price="10.00", stock="10", is_active=False)
        factory.cart(user, [(below_min, 2), (inactive, 1)])

        with pytest.raises(BelowMinimumOrder) as exc:
            service.place_order(AuthenticatedPrincipal(user.id), address.id, option.id, PaymentMethod.CASH_ON_DELIVERY)
        assert exc.value.product_id == below_min.id

    def test_stock_taken_after_read_aborts(self, db, factory, service):
        ctx = factory.checkout_ready(lines=[("50.00", "10", 2), ("30.00", "10", 3)])
        first, second = ctx["products"]
        #produkty odczytane zanim rownolegle zamowienie zabralo stan
        stale = {p.id: detached_copy(p) for p in ctx["products"]}
        db.execute(update(ProductModel).where(ProductModel.id == second.id).values(stock_quantity=Decimal("1.00")))
        db.commit()
        before = counts(db)

        with patch("checkout.repos.product_repo.ProductRepo.get_products_for_update", return_value=stale):
            with pytest.raises(ProductUnavailable) as exc:
                place(service, ctx)

        assert exc.value.product_id == second.id
        assert counts(db) == before
        assert stock(db, first) == Decimal("10.00")
        assert stock(db, second) == Decimal("1.00")

    def test_unexpected_error_becomes_placement_failure(self, db, factory, service):
        ctx = factory.checkout_ready()
        before = counts(db)

        with patch(
            "checkout.repos.order_repo.OrderRepo.add_address_snapshots",
            side_effect=RuntimeError("disk full"),
        ):
            with pytest.raises(OrderPlacementFailed) as exc:
                place(service, ctx)

        assert "disk full" in exc.value.details["cause"]
        assert counts(db) == before
        assert stock(db, ctx["products"][0]) == Decimal("10.00")

    def test_stock_is_conserved(self, db, factory, service):
        ctx = factory.checkout_ready(lines=[("12.50", "7.5", "2.5")])
        product = ctx["products"][0]

        order = place(service, ctx).order

        assert stock(db, product) + order.items[0].quantity == Decimal("7.50")


class TestOrderNumbers:
    def test_collision_is_retried(self, db, factory, gateway, notifications):
        first = factory.checkout_ready()
        numbers = iter(["MC-ORD-20250101000000AAAAAA", "MC-ORD-20250101000000AAAAAA", "MC-ORD-20250101000000BBBBBB"])
        service = OrderService(db, gateway=gateway, notification_service=notifications,
                               order_number_generator=lambda: next(numbers))

        assert place(service, first).order.order_number == "MC-ORD-20250101000000AAAAAA"

        second = factory.checkout_ready()
        assert place(service, second).order.order_number == "MC-ORD-20250101000000BBBBBB"

    def test_gives_up_after_max_attempts(self, db, factory, gateway, notifications):
        first = factory.checkout_ready()
        service = OrderService(db, gateway=gateway, notification_service=notifications,
                               order_number_generator=lambda: "MC-ORD-20250101000000AAAAAA")
        place(service, first)

        second = factory.checkout_ready()
        before = counts(db)
        with pytest.raises(OrderPlacementFailed):
            place(service, second)
        assert counts(db) == before


class TestGetOrder:
    def test_owner_can_read(self, factory, service):
        ctx = factory.checkout_ready()
        order = place(service, ctx).order

        loaded = service.get_order(ctx["principal"], order.id)
        assert loaded.id == order.id
        assert len(loaded.items) == 1
        assert loaded.delivery_option.id == ctx["option"].id

    def test_admin_can_read(self, factory, service, admin):
        ctx = factory.checkout_ready()
        order = place(service, ctx).order
        assert service.get_order(admin, order.id).id == order.id

    def test_other_user_denied(self, factory, service):
        ctx = factory.checkout_ready()
        order = place(service, ctx).order
        other = factory.user()

        with pytest.raises(OrderAccessDenied):
            service.get_order(AuthenticatedPrincipal(other.id), order.id)

    def test_missing(self, service, admin):
        with pytest.raises(OrderNotFound):
            service.get_order(admin, 12345)


class TestUpdateFulfillment:
    def test_admin_ships_and_delivers(self, factory, service, admin):
        ctx = factory.checkout_ready()
        order = place(service, ctx).order

        shipped = service.update_fulfillment(
            admin, order.id, order_status=OrderStatus.SHIPPED,
            delivery_tracking_number="TRK-1", delivery_service="Ghana Post",
        )
        assert shipped.order_status == "shipped"
        assert shipped.dispatched_at is not None
        assert shipped.delivered_at is None
        assert shipped.delivery_tracking_number == "TRK-1"

        delivered = service.update_fulfillment(admin, order.id, order_status=OrderStatus.DELIVERED)
        assert delivered.delivered_at is not None
        assert delivered.payment_status == PaymentStatus.UNPAID.value

    def test_customer_cannot_update(self, factory, service):
        ctx = factory.checkout_ready()
        order = place(service, ctx).order

        with pytest.raises(OrderAccessDenied):
            service.update_fulfillment(ctx["principal"], order.id, order_status=OrderStatus.SHIPPED)

    def test_missing_order(self, service, admin):
        with pytest.raises(OrderNotFound):
            service.update_fulfillment(admin, 999, order_status=OrderStatus.SHIPPED)


class TestDeleteOrder:
    def test_admin_delete_removes_items_and_snapshots(self, db, factory, service, admin):
        ctx = factory.checkout_ready(lines=[("50.00", "10", 2), ("30.00", "5", 1)])
        order_id = place(service, ctx).order.id

        service.delete_order(admin, order_id)

        assert counts(db)["orders"] == 0
        assert counts(db)["items"] == 0
        assert counts(db)["snapshots"] == 0
        #produkty i stan zostaja
        assert stock(db, ctx["products"][0]) == Decimal("8.00")

    def test_database_cascades_to_items_and_snapshots(self, db, factory, service):
        ctx = factory.checkout_ready()
        order_id = place(service, ctx).order.id

        db.execute(delete(OrderModel).where(OrderModel.id == order_id))
        db.commit()

        assert counts(db)["items"] == 0
        assert counts(db)["snapshots"] == 0

    def test_customer_cannot_delete(self, db, factory, service):
        ctx = factory.checkout_ready()
        order_id = place(service, ctx).order.id

        with pytest.raises(OrderAccessDenied):
            service.delete_order(ctx["principal"], order_id)
        assert counts(db)["orders"] == 1

    def test_missing_order(self, service, admin):
        with pytest.raises(OrderNotFound):
            service.delete_order(admin, 999)

    def test_ordered_product_cannot_be_deleted(self, db, factory, service):
        ctx = factory.checkout_ready()
        place(service, ctx)
        product_id = ctx["products"][0].id

        db.delete(db.get(ProductModel, product_id))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

        assert db.get(ProductModel, product_id) is not None
        assert counts(db)["items"] == 1
