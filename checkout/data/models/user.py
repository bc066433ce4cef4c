from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from checkout.data.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    phone_number = Column(String, nullable=True)
    role = Column(String, nullable=False, default="customer")

    customer = relationship("CustomerModel", back_populates="user", uselist=False)
