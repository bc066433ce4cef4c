import hashlib
import hmac
import os
from decimal import Decimal

#przed importem checkout - settings czytane przy imporcie
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["PAYSTACK_WEBHOOK_SECRET"] = "whsec_test"
os.environ["PAYMENT_CURRENCY"] = "GHS"

import pytest
from fastapi.testclient import TestClient

from checkout.celery_worker import celery_app
from checkout.data.database import Base, SessionLocal, engine, get_db
from checkout.data.models import (
    AddressModel,
    CartItemModel,
    CartModel,
    CustomerModel,
    DeliveryOptionModel,
    ProductModel,
    UserModel,
)
from checkout.domain.enums import UserRole
from checkout.domain.exceptions import PaymentGatewayError
from checkout.domain.pricing import current_price, line_total
from checkout.domain.principal import AuthenticatedPrincipal
from checkout.services.payment_gateway import GatewaySession, PaystackClient, Verification

celery_app.conf.task_always_eager = True
celery_app.conf.task_eager_propagates = True

WEBHOOK_SECRET = "whsec_test"


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()


class FakeGateway(PaystackClient):
    """
    PaystackClient bez sieci: initialize/verify z pamieci,
    sprawdzanie podpisu zostaje prawdziwe.
    """

    def __init__(self, webhook_secret: str = WEBHOOK_SECRET):
        super().__init__(
            base_url="https://paystack.test",
            secret_key="sk_test",
            webhook_secret=webhook_secret,
            currency="GHS",
        )
        self.init_calls = []
        self.verify_calls = []
        self.fail_init = False
        self.fail_verify = False
        self.verifications = {}

    def initialize_session(self, amount, email, reference, callback_url):
        self.init_calls.append(
            {"amount": amount, "email": email, "reference": reference, "callback_url": callback_url}
        )
        if self.fail_init:
            raise PaymentGatewayError("Payment gateway unreachable: connection refused", reference=reference)
        return GatewaySession(
            authorization_url=f"https://checkout.paystack.test/{reference}",
            access_code=f"AC_{reference}",
            reference=reference,
        )

    def verify_by_reference(self, reference):
        self.verify_calls.append(reference)
        if self.fail_verify:
            raise PaymentGatewayError("Payment gateway unreachable: timeout", reference=reference)
        return self.verifications.get(
            reference,
            Verification(success=False, amount_minor=0, currency=None, gateway_transaction_id=None,
                         raw={"status": "abandoned"}),
        )

    def confirm(self, reference: str, amount_minor: int, currency: str = "GHS", transaction_id: int = 4099260516):
        self.verifications[reference] = Verification(
            success=True,
            amount_minor=amount_minor,
            currency=currency,
            gateway_transaction_id=str(transaction_id),
            raw={
                "id": transaction_id,
                "status": "success",
                "reference": reference,
                "amount": amount_minor,
                "currency": currency,
            },
        )


class FakeLockService:
    def __init__(self):
        self.locks = {}
        self.acquired = []

    def acquire_payment_lock(self, reference, token, ttl):
        if reference in self.locks:
            return False
        self.locks[reference] = token
        self.acquired.append(reference)
        return True

    def release_payment_lock(self, reference, token):
        if self.locks.get(reference) == token:
            del self.locks[reference]
            return True
        return False


class RecordingNotifications:
    def __init__(self):
        self.orders = []
        self.payments = []

    def send_order_notification(self, user_id, order_number):
        self.orders.append((user_id, order_number))

    def send_payment_confirmation(self, user_id, order_number):
        self.payments.append((user_id, order_number))


class Factory:
    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self):
        self._seq += 1
        return self._seq

    def user(self, role=UserRole.CUSTOMER, name="Kofi Boateng", phone_number="+233241234567"):
        n = self._next()
        user = UserModel(name=name, email=f"user{n}@example.com", phone_number=phone_number, role=role.value)
        self.db.add(user)
        self.db.commit()
        return user

    def customer(self, user=None):
        user = user or self.user()
        customer = CustomerModel(user_id=user.id)
        self.db.add(customer)
        self.db.commit()
        return customer

    def address(self, customer, **kwargs):
        data = {
            "address_line1": "7 Ring Road Central",
            "city": "Accra",
            "region": "Greater Accra",
            "country": "Ghana",
            "ghanapost_gps_address": "GA-183-8164",
            "delivery_instructions": "Call on arrival",
        }
        data.update(kwargs)
        address = AddressModel(customer_id=customer.id, **data)
        self.db.add(address)
        self.db.commit()
        return address

    def delivery_option(self, cost="10.00", is_active=True, name="Standard"):
        option = DeliveryOptionModel(name=name, cost=Decimal(cost), is_active=is_active)
        self.db.add(option)
        self.db.commit()
        return option

    def product(self, price="50.00", stock="10", min_order="1", is_active=True, unit="kg", **kwargs):
        n = self._next()
        product = ProductModel(
            name=kwargs.pop("name", f"Product {n}"),
            sku=f"SKU-{n}",
            unit_of_measure=unit,
            price_per_unit=Decimal(price),
            stock_quantity=Decimal(stock),
            min_order_quantity=Decimal(min_order),
            is_active=is_active,
            **kwargs,
        )
        self.db.add(product)
        self.db.commit()
        return product

    def cart(self, user=None, lines=()):
        cart = CartModel(user_id=user.id if user else None, status="active")
        self.db.add(cart)
        self.db.flush()
        for product, quantity in lines:
            price = current_price(product)
            self.db.add(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=product.id,
                    quantity=Decimal(str(quantity)),
                    price_per_unit_at_addition=price,
                    unit_of_measure_at_addition=product.unit_of_measure,
                    line_item_total=line_total(quantity, price),
                )
            )
        self.db.commit()
        return cart

    def checkout_ready(self, lines=(("50.00", "10", 2),), delivery_cost="10.00"):
        """Uzytkownik z profilem, adresem, opcja dostawy i koszykiem."""
        user = self.user()
        customer = self.customer(user)
        address = self.address(customer)
        option = self.delivery_option(cost=delivery_cost)
        products = []
        cart_lines = []
        for price, stock, quantity in lines:
            product = self.product(price=price, stock=stock)
            products.append(product)
            cart_lines.append((product, quantity))
        self.cart(user, cart_lines)
        return {
            "user": user,
            "customer": customer,
            "address": address,
            "option": option,
            "products": products,
            "principal": AuthenticatedPrincipal(user_id=user.id),
        }


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def notifications():
    return RecordingNotifications()


@pytest.fixture
def admin(factory):
    user = factory.user(role=UserRole.ADMIN, name="Admin")
    return AuthenticatedPrincipal(user_id=user.id, role=UserRole.ADMIN)


@pytest.fixture
def client(gateway, lock_service, notifications):
    from checkout.api import deps
    from checkout.main import app

    def _get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[deps.get_gateway] = lambda: gateway
    app.dependency_overrides[deps.get_lock_service] = lambda: lock_service
    app.dependency_overrides[deps.get_notification_service] = lambda: notifications

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
