from sqlalchemy import Boolean, Column, Integer, Numeric, String, Text

from checkout.data.database import Base


class DeliveryOptionModel(Base):
    __tablename__ = "delivery_options"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    cost = Column(Numeric(12, 2), nullable=False, default=0)
    min_delivery_days = Column(Integer, nullable=True)
    max_delivery_days = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
