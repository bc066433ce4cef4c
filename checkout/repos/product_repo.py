# checkout/repos/product_repo.py
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from checkout.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products_for_update(self, product_ids: Iterable[int]) -> dict[int, ProductModel]:
        """
        SELECT ... FOR UPDATE na wierszach produktow (postgres), sqlite ignoruje.
        Blokada trzymana do commit/rollback transakcji zamowienia.
        """
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        rows = self.db.execute(
            select(ProductModel)
            .where(ProductModel.id.in_(ids))
            .order_by(ProductModel.id)
            .with_for_update()
        ).scalars().all()
        return {p.id: p for p in rows}

    def decrement_stock_if_sufficient(self, product_id: int, quantity) -> bool:
        #UPDATE products SET stock = stock - q WHERE id = :id AND stock >= q
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.stock_quantity >= Decimal(str(quantity)),
            )
            .values(stock_quantity=ProductModel.stock_quantity - Decimal(str(quantity)))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def save(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product
