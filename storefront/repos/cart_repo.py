# storefront/repos/cart_repo.py
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from storefront.data.models.cart import CartModel
from storefront.repos.base import BaseRepo


class CartRepo(BaseRepo):
    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        try:
            self.db.flush()
        except IntegrityError:
            # concurrent first access already created it (user_id is unique)
            self.db.rollback()
            return self.get_cart_by_user(cart.user_id)
        self.commit()
        self.db.refresh(cart)
        return cart

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        # UPDATE carts SET version = v + 1 WHERE id = :id AND version = v
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
