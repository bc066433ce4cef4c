from sqlalchemy.orm import Session

from checkout.data.models.address import AddressModel
from checkout.data.models.customer import CustomerModel
from checkout.data.models.delivery_option import DeliveryOptionModel


class CustomerRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_customer_by_user(self, user_id: int) -> CustomerModel | None:
        return self.db.query(CustomerModel).filter(CustomerModel.user_id == user_id).first()

    def get_address_for_customer(self, address_id: int, customer_id: int) -> AddressModel | None:
        return (
            self.db.query(AddressModel)
            .filter(AddressModel.id == address_id, AddressModel.customer_id == customer_id)
            .first()
        )

    def get_active_delivery_option(self, option_id: int) -> DeliveryOptionModel | None:
        return (
            self.db.query(DeliveryOptionModel)
            .filter(DeliveryOptionModel.id == option_id, DeliveryOptionModel.is_active.is_(True))
            .first()
        )
