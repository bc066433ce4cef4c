# checkout/repos/order_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from checkout.data.models.order import OrderModel
from checkout.data.models.order_address_snapshot import OrderAddressSnapshotModel
from checkout.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def order_number_exists(self, order_number: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_number == order_number)
        ).first() is not None

    def add_order(self, order: OrderModel) -> OrderModel:
        #flush bez commit - commit robi serwis na koncu transakcji
        self.db.add(order)
        self.db.flush()
        return order

    def add_items(self, items: list[OrderItemModel]) -> None:
        self.db.add_all(items)

    def add_address_snapshots(self, snapshots: list[OrderAddressSnapshotModel]) -> None:
        self.db.add_all(snapshots)

    def get_order(self, order_id: int) -> OrderModel | None:
        return (
            self.db.query(OrderModel)
            .options(
                selectinload(OrderModel.items),
                selectinload(OrderModel.address_snapshots),
                selectinload(OrderModel.delivery_option),
                selectinload(OrderModel.customer),
            )
            .filter(OrderModel.id == order_id)
            .first()
        )

    def get_order_by_number_for_update(self, order_number: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.order_number == order_number)
            .with_for_update()
        ).scalar_one_or_none()

    def update_order(self, order_id: int, new_data: dict) -> int:
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def transition_unless_paid(self, order_id: int, new_data: dict) -> int:
        """
        UPDATE orders SET ... WHERE id = :id AND payment_status <> 'paid'

        0 zmienionych wierszy = ktos inny juz oznaczyl zamowienie jako oplacone.
        """
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.payment_status != "paid")
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_order(self, order: OrderModel) -> None:
        #pozycje i snapshoty adresu leca kaskada (ON DELETE CASCADE)
        self.db.delete(order)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
