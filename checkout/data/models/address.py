from sqlalchemy import Boolean, Column, Integer, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from checkout.data.database import Base


class AddressModel(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)

    address_line1 = Column(String, nullable=False)
    address_line2 = Column(String, nullable=True)
    city = Column(String, nullable=False)
    region = Column(String, nullable=False)
    country = Column(String, nullable=False, default="Ghana")
    ghanapost_gps_address = Column(String, nullable=True)
    digital_address_description = Column(Text, nullable=True)
    delivery_instructions = Column(Text, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)

    customer = relationship("CustomerModel", back_populates="addresses")
