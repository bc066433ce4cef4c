# checkout/data/seed.py
from decimal import Decimal

from checkout.data.database import Base, SessionLocal, engine
from checkout.data.models import (
    AddressModel,
    CustomerModel,
    DeliveryOptionModel,
    ProductModel,
    UserModel,
)
from checkout.domain.enums import UserRole
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        #tylko pusta baza
        if db.query(DeliveryOptionModel).first():
            logger.info("Database already seeded, skipping")
            return

        db.add_all(
            [
                DeliveryOptionModel(name="Standard", cost=Decimal("10.00"), min_delivery_days=2, max_delivery_days=5),
                DeliveryOptionModel(name="Express", cost=Decimal("25.00"), min_delivery_days=1, max_delivery_days=1),
                DeliveryOptionModel(name="Pickup", cost=Decimal("0.00"), is_active=False),
            ]
        )
        db.add_all(
            [
                ProductModel(name="Tomatoes", sku="VEG-TOM", unit_of_measure="kg",
                             price_per_unit=Decimal("12.50"), stock_quantity=Decimal("200"),
                             min_order_quantity=Decimal("1")),
                ProductModel(name="Rice (50kg bag)", sku="GRN-RICE-50", unit_of_measure="bag",
                             price_per_unit=Decimal("450.00"), stock_quantity=Decimal("40"),
                             min_order_quantity=Decimal("1")),
                ProductModel(name="Palm oil", sku="OIL-PALM", unit_of_measure="litre",
                             price_per_unit=Decimal("30.00"), stock_quantity=Decimal("120"),
                             min_order_quantity=Decimal("2")),
            ]
        )

        admin = UserModel(name="Admin", email="admin@example.com", role=UserRole.ADMIN.value)
        customer_user = UserModel(name="Ama Mensah", email="ama@example.com", phone_number="+233200000000")
        db.add_all([admin, customer_user])
        db.flush()

        customer = CustomerModel(user_id=customer_user.id)
        db.add(customer)
        db.flush()
        db.add(
            AddressModel(
                customer_id=customer.id,
                address_line1="12 Oxford Street",
                city="Accra",
                region="Greater Accra",
                ghanapost_gps_address="GA-123-4567",
                is_default=True,
            )
        )
        db.commit()
        logger.info(f"Seeded admin user {admin.id} and customer user {customer_user.id}")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
