# storefront/repos/order_repo.py
from sqlalchemy import func, select

from storefront.data.models.order import OrderModel
from storefront.repos.base import BaseRepo


class OrderRepo(BaseRepo):
    def add_order(self, order: OrderModel) -> OrderModel:
        # no commit here, checkout commits stock + order together
        self.db.add(order)
        self.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def list_orders(
        self,
        offset: int,
        limit: int,
        user_id: int | None = None,
        status: str | None = None,
    ) -> tuple[list[OrderModel], int]:
        filters = []
        if user_id is not None:
            filters.append(OrderModel.user_id == user_id)
        if status is not None:
            filters.append(OrderModel.order_status == status)

        total = self.db.execute(
            select(func.count(OrderModel.id)).where(*filters)
        ).scalar_one()
        rows = self.db.execute(
            select(OrderModel)
            .where(*filters)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars()
        return list(rows), total

    def update_order_status(self, order: OrderModel, changes: dict) -> OrderModel:
        for field, value in changes.items():
            setattr(order, field, value)
        self.commit()
        self.db.refresh(order)
        return order

    def delete_order(self, order: OrderModel) -> None:
        self.db.delete(order)
        self.commit()
