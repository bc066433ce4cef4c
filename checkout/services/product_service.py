# checkout/services/product_service.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from checkout.domain.enums import DiscountKind
from checkout.domain.exceptions import InvalidDiscount, ProductNotFound
from checkout.domain.pricing import Discount, apply_discount, current_price, discount_is_active
from checkout.domain.principal import AuthenticatedPrincipal
from checkout.repos.product_repo import ProductRepo
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    """Odczyt produktu z aktualna cena i ustawianie rabatu (admin)."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def get_product(self, product_id: int) -> Dict[str, Any]:
        product = self.repo.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return self.product_view(product)

    def set_discount(
        self,
        principal: AuthenticatedPrincipal,
        product_id: int,
        kind: DiscountKind | None,
        value: Decimal | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Dict[str, Any]:
        if not principal.is_admin:
            raise PermissionError("Only administrators can change product discounts")

        product = self.repo.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)

        discount = None
        if kind is not None:
            if value is None:
                raise InvalidDiscount("A discount value is required when a discount kind is given.")
            discount = Discount(DiscountKind(kind), Decimal(str(value)))
        apply_discount(product, discount, start, end)
        self.repo.save(product)

        logger.info(
            f"Discount on product {product_id} set to "
            f"{product.discount_price} ({product.discount_percentage}%) by admin {principal.user_id}"
        )
        return self.product_view(product)

    @staticmethod
    def product_view(product) -> Dict[str, Any]:
        return {
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
            "unit_of_measure": product.unit_of_measure,
            "price_per_unit": product.price_per_unit,
            "current_price": current_price(product),
            "discount_active": discount_is_active(product),
            "discount_price": product.discount_price,
            "discount_percentage": product.discount_percentage,
            "discount_start_date": product.discount_start_date,
            "discount_end_date": product.discount_end_date,
            "stock_quantity": product.stock_quantity,
            "min_order_quantity": product.min_order_quantity,
            "is_active": product.is_active,
        }
