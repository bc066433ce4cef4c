from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String

from checkout.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    sku = Column(String, nullable=True, unique=True)
    unit_of_measure = Column(String, nullable=False, default="piece")

    price_per_unit = Column(Numeric(12, 2), nullable=False)
    #rabat: kwotowy albo procentowy, zawsze ustawiany przez pricing.apply_discount
    discount_price = Column(Numeric(12, 2), nullable=True)
    discount_percentage = Column(Numeric(5, 2), nullable=True)
    discount_start_date = Column(DateTime(timezone=True), nullable=True)
    discount_end_date = Column(DateTime(timezone=True), nullable=True)

    stock_quantity = Column(Numeric(12, 2), nullable=False, default=0)
    min_order_quantity = Column(Numeric(12, 2), nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
