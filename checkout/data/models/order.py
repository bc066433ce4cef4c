from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Integer, ForeignKey, String, DateTime, Numeric, Text
from sqlalchemy.orm import relationship

from checkout.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String, nullable=False, unique=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    delivery_address_id = Column(Integer, ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True)
    delivery_option_id = Column(Integer, ForeignKey("delivery_options.id", ondelete="RESTRICT"), nullable=False)

    order_total = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String, nullable=False)
    payment_status = Column(String, nullable=False, default="unpaid")
    order_status = Column(String, nullable=False, default="pending")
    payment_gateway_transaction_id = Column(String, nullable=True)
    payment_details = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    delivery_tracking_number = Column(String, nullable=True)
    delivery_service = Column(String, nullable=True)
    ordered_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    customer = relationship("CustomerModel")
    delivery_option = relationship("DeliveryOptionModel")
    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItemModel.id",
    )
    address_snapshots = relationship(
        "OrderAddressSnapshotModel",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderAddressSnapshotModel.id",
    )
