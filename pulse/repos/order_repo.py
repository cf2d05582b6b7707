# pulse/repos/order_repo.py
from typing import Sequence

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from pulse.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_by_number(self, order_number: str) -> OrderModel | None:
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.order_number == order_number)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_for_user(self, user_id: int, limit: int, offset: int) -> Sequence[OrderModel]:
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return self.db.execute(stmt).scalars().all()

    def count_for_user(self, user_id: int) -> int:
        return self.db.execute(
            select(func.count(OrderModel.id)).where(OrderModel.user_id == user_id)
        ).scalar_one()

    def recent(self, limit: int) -> Sequence[OrderModel]:
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .limit(limit)
        )
        return self.db.execute(stmt).scalars().all()

    def status_totals(self):
        """(status, count, sum of total_amount) per status."""
        stmt = select(
            OrderModel.status,
            func.count(OrderModel.id),
            func.coalesce(func.sum(OrderModel.total_amount), 0),
        ).group_by(OrderModel.status)
        return self.db.execute(stmt).all()

    def created_since(self, since) -> Sequence[OrderModel]:
        """Newest first."""
        stmt = (
            select(OrderModel)
            .where(OrderModel.created_at >= since)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        )
        return self.db.execute(stmt).scalars().all()

    def update_if_status(self, order_id: int, expected_status: str, values: dict) -> int:
        """Guarded update; 0 rows means another request changed the status first."""
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == expected_status)
            .values(**values)
        )
        return result.rowcount

    def count_all(self) -> int:
        return self.db.execute(select(func.count(OrderModel.id))).scalar_one()
