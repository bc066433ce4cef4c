from sqlalchemy import Column, Integer, ForeignKey, String
from sqlalchemy.orm import relationship

from checkout.data.database import Base


class CustomerModel(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    customer_type = Column(String, nullable=False, default="individual")
    business_name = Column(String, nullable=True)

    user = relationship("UserModel", back_populates="customer")
    addresses = relationship("AddressModel", back_populates="customer", cascade="all, delete-orphan")
