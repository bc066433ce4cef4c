from sqlalchemy import Column, Integer, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from checkout.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    #RESTRICT - usuniecie produktu nie moze zmienic historii zamowien
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)

    product_name = Column(String, nullable=False)
    price_per_unit_at_purchase = Column(Numeric(12, 2), nullable=False)
    unit_of_measure_at_purchase = Column(String, nullable=True)
    quantity = Column(Numeric(12, 2), nullable=False)
    line_item_total = Column(Numeric(12, 2), nullable=False)

    order = relationship("OrderModel", back_populates="items")
