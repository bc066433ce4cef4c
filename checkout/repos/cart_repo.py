# checkout/repos/cart_repo.py
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from checkout.data.models.cart import CartModel
from checkout.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return (
            self.db.query(CartModel)
            .options(selectinload(CartModel.items))
            .filter(CartModel.user_id == user_id)
            .first()
        )

    def get_active_cart_by_user(self, user_id: int) -> CartModel | None:
        return (
            self.db.query(CartModel)
            .options(selectinload(CartModel.items))
            .filter(CartModel.user_id == user_id, CartModel.status == "active")
            .first()
        )

    def get_guest_cart(self, cart_id: int) -> CartModel | None:
        return (
            self.db.query(CartModel)
            .options(selectinload(CartModel.items))
            .filter(
                CartModel.id == cart_id,
                CartModel.user_id.is_(None),
                CartModel.status == "active",
            )
            .first()
        )

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return (
            self.db.query(CartItemModel)
            .filter(CartItemModel.cart_id == cart_id, CartItemModel.product_id == product_id)
            .first()
        )

    def get_item(self, item_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, item_id)

    def add_cart_item(self, item: CartItemModel) -> None:
        self.db.add(item)

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)

    def delete_cart(self, cart: CartModel) -> None:
        #cascade usuwa tez pozycje koszyka
        self.db.delete(cart)

    def count_items(self, cart_id: int) -> int:
        return self.db.query(CartItemModel).filter(CartItemModel.cart_id == cart_id).count()

    def abandon_carts_idle_since(self, cutoff: datetime) -> int:
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.status == "active", CartModel.updated_at < cutoff)
            .values(status="abandoned")
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
