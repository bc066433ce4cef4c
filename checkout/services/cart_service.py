# checkout/services/cart_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from checkout.data.models.cart import CartModel
from checkout.data.models.cart_item import CartItemModel
from checkout.domain.enums import CartStatus
from checkout.domain.exceptions import (
    BelowMinimumOrder,
    CartAccessDenied,
    CartLineNotFound,
    CartNotFound,
    ProductUnavailable,
)
from checkout.domain.pricing import current_price, line_total, money
from checkout.domain.principal import AuthenticatedPrincipal
from checkout.repos.cart_repo import CartRepo
from checkout.repos.product_repo import ProductRepo
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Prosta implementacja cqrs dla domeny cart
    commands (add, update, remove, clear) modyfikuja stan
    query (get_or_create) zwraca widok koszyka

    Koszyk zalogowanego uzytkownika jest jeden (user_id unique), koszyk goscia
    identyfikowany jest przez id przekazywane w naglowku X-Guest-Cart-Id.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.product_repo = ProductRepo(db)

    #query
    def get_or_create_cart(
        self,
        principal: AuthenticatedPrincipal | None,
        guest_cart_id: int | None = None,
    ) -> tuple[Dict[str, Any], bool]:
        cart, created = self._resolve_cart(principal, guest_cart_id)
        #nowy albo reaktywowany koszyk
        self.repo.commit()
        return self.cart_view(cart), created

    #commands
    def add_item(
        self,
        principal: AuthenticatedPrincipal | None,
        guest_cart_id: int | None,
        product_id: int,
        quantity: Decimal,
    ) -> Dict[str, Any]:
        quantity = Decimal(str(quantity))
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        product = self.product_repo.get_product(product_id)
        if not product or not product.is_active or product.stock_quantity < quantity:
            raise ProductUnavailable(
                product_id=product_id,
                product_name=getattr(product, "name", None),
                requested=str(quantity),
            )

        cart, _ = self._resolve_cart(principal, guest_cart_id)
        existing_item = self.repo.get_cart_item(cart.id, product_id)

        if existing_item:
            new_quantity = existing_item.quantity + quantity
            if product.stock_quantity < new_quantity:
                raise ProductUnavailable(
                    product_id=product_id,
                    product_name=product.name,
                    requested=str(new_quantity),
                    available=str(product.stock_quantity),
                )
            logger.info(
                f"Product {product_id} already in cart {cart.id}, quantity "
                f"{existing_item.quantity} -> {new_quantity}"
            )
            self._snapshot(existing_item, product, new_quantity)
        else:
            #minimalna ilosc zamowienia - podnosimy zamiast odrzucac
            if quantity < product.min_order_quantity:
                quantity = Decimal(str(product.min_order_quantity))
            if product.stock_quantity < quantity:
                raise ProductUnavailable(
                    product_id=product_id,
                    product_name=product.name,
                    requested=str(quantity),
                    available=str(product.stock_quantity),
                )
            logger.info(f"Adding product {product_id} to cart {cart.id}")
            item = CartItemModel(cart_id=cart.id, product_id=product_id)
            self._snapshot(item, product, quantity)
            self.repo.add_cart_item(item)

        self._touch(cart)
        self.repo.commit()
        self.db.refresh(cart)
        return self.cart_view(cart)

    def update_item(
        self,
        principal: AuthenticatedPrincipal | None,
        guest_cart_id: int | None,
        item_id: int,
        quantity: Decimal,
    ) -> Dict[str, Any]:
        quantity = Decimal(str(quantity))
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        item = self._owned_item(principal, guest_cart_id, item_id)
        product = item.product

        if not product or not product.is_active or product.stock_quantity < quantity:
            raise ProductUnavailable(
                product_id=item.product_id,
                product_name=getattr(product, "name", None),
                requested=str(quantity),
            )
        if quantity < product.min_order_quantity:
            raise BelowMinimumOrder(
                product_id=product.id,
                product_name=product.name,
                min_order_quantity=product.min_order_quantity,
                unit_of_measure=product.unit_of_measure,
            )

        self._snapshot(item, product, quantity)
        cart = item.cart
        self._touch(cart)
        self.repo.commit()
        self.db.refresh(cart)
        return self.cart_view(cart)

    def remove_item(
        self,
        principal: AuthenticatedPrincipal | None,
        guest_cart_id: int | None,
        item_id: int,
    ) -> Dict[str, Any] | None:
        item = self._owned_item(principal, guest_cart_id, item_id)
        cart = item.cart
        cart_id = cart.id

        self.repo.delete_cart_item(item)
        self.db.flush()

        #ostatnia pozycja -> usuwamy caly koszyk
        if self.repo.count_items(cart_id) == 0:
            self.repo.delete_cart(cart)
            self.repo.commit()
            logger.info(f"Cart {cart_id} is empty and was deleted")
            return None

        self._touch(cart)
        self.repo.commit()
        self.db.refresh(cart)
        return self.cart_view(cart)

    def clear(self, principal: AuthenticatedPrincipal | None, guest_cart_id: int | None) -> None:
        if principal is not None:
            cart = self.repo.get_active_cart_by_user(principal.user_id)
        elif guest_cart_id is not None:
            cart = self.repo.get_guest_cart(guest_cart_id)
        else:
            raise CartAccessDenied("Authentication required or guest cart ID missing to clear cart.")

        if cart is None:
            raise CartNotFound()

        cart_id = cart.id
        self.repo.delete_cart(cart)
        self.repo.commit()
        logger.info(f"Cart {cart_id} cleared")

    #helpers
    def _resolve_cart(
        self,
        principal: AuthenticatedPrincipal | None,
        guest_cart_id: int | None,
    ) -> tuple[CartModel, bool]:
        if principal is not None:
            cart = self.repo.get_cart_by_user(principal.user_id)
            if cart is not None:
                if cart.status != CartStatus.ACTIVE.value:
                    logger.info(f"Reactivating {cart.status} cart {cart.id} for user {principal.user_id}")
                    cart.status = CartStatus.ACTIVE.value
                return cart, False
            cart = CartModel(user_id=principal.user_id, status=CartStatus.ACTIVE.value)
        else:
            if guest_cart_id is not None:
                cart = self.repo.get_guest_cart(guest_cart_id)
                if cart is not None:
                    return cart, False
            cart = CartModel(user_id=None, status=CartStatus.ACTIVE.value)

        self.db.add(cart)
        self.db.flush()
        logger.info(f"Created cart {cart.id} for {'user ' + str(principal.user_id) if principal else 'guest'}")
        return cart, True

    def _owned_item(
        self,
        principal: AuthenticatedPrincipal | None,
        guest_cart_id: int | None,
        item_id: int,
    ) -> CartItemModel:
        item = self.repo.get_item(item_id)
        if item is None:
            raise CartLineNotFound(item_id)

        cart = item.cart
        if principal is not None:
            if cart.user_id != principal.user_id:
                raise CartAccessDenied("Unauthorized to modify this cart item.")
        elif guest_cart_id is not None:
            if cart.id != guest_cart_id or cart.user_id is not None:
                raise CartAccessDenied("Unauthorized to modify this cart item or invalid guest cart ID.")
        else:
            raise CartAccessDenied("Authentication required or guest cart ID missing.")

        return item

    @staticmethod
    def _snapshot(item: CartItemModel, product, quantity: Decimal) -> None:
        #snapshot ceny i jednostki + przeliczenie line_item_total przy kazdej zmianie
        price = current_price(product)
        item.quantity = quantity
        item.price_per_unit_at_addition = price
        item.unit_of_measure_at_addition = product.unit_of_measure
        item.line_item_total = line_total(quantity, price)

    @staticmethod
    def _touch(cart: CartModel) -> None:
        cart.updated_at = datetime.now(timezone.utc)

    @staticmethod
    def cart_view(cart: CartModel) -> Dict[str, Any]:
        items = list(cart.items)
        total = money(sum((i.line_item_total for i in items), Decimal("0.00")))
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "status": cart.status,
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "quantity": i.quantity,
                    "price_per_unit_at_addition": i.price_per_unit_at_addition,
                    "unit_of_measure_at_addition": i.unit_of_measure_at_addition,
                    "line_item_total": i.line_item_total,
                }
                for i in items
            ],
            "total": total,
            "guest_cart_id": cart.id if cart.user_id is None else None,
        }
