from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Text
from sqlalchemy.orm import relationship

from checkout.data.database import Base


class OrderAddressSnapshotModel(Base):
    __tablename__ = "order_address_snapshots"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    address_type = Column(String, nullable=False)  # Shipping, Billing

    recipient_name = Column(String, nullable=False)
    phone_number = Column(String, nullable=True)
    address_line1 = Column(String, nullable=False)
    address_line2 = Column(String, nullable=True)
    city = Column(String, nullable=False)
    region = Column(String, nullable=False)
    country = Column(String, nullable=False)
    ghanapost_gps_address = Column(String, nullable=True)
    digital_address_description = Column(Text, nullable=True)
    delivery_instructions = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    order = relationship("OrderModel", back_populates="address_snapshots")
