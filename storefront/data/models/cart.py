# storefront/data/models/cart.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, Integer, String, DateTime, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.money import ZERO, to_money


def _utcnow():
    return datetime.now(timezone.utc)


class CartModel(Base):
    """
    Cart aggregate, one per user.

    Every mutating method ends with recompute_totals(), so subtotal, total,
    total_items and each line total are always derived from the items and
    the stored discount amount. The totals are read-only properties.
    """

    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, unique=True, index=True)
    version = Column(Integer, nullable=False, default=1)

    discount_code = Column(String, nullable=True)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=ZERO)

    _subtotal = Column("subtotal", Numeric(10, 2), nullable=False, default=ZERO)
    _total = Column("total", Numeric(10, 2), nullable=False, default=ZERO)
    _total_items = Column("total_items", Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )

    # derived, read-only
    @property
    def subtotal(self) -> Decimal:
        return self._subtotal if self._subtotal is not None else ZERO

    @property
    def total(self) -> Decimal:
        return self._total if self._total is not None else ZERO

    @property
    def total_items(self) -> int:
        return self._total_items or 0

    @property
    def applied_discount(self) -> dict | None:
        if not self.discount_code:
            return None
        return {"code": self.discount_code, "amount": self.discount_amount}

    # lookups
    def find_item(self, item_id: int) -> CartItemModel | None:
        return next((i for i in self.items if i.id == item_id), None)

    def find_item_by_product(self, product_id: int) -> CartItemModel | None:
        return next((i for i in self.items if i.product_id == product_id), None)

    # mutations
    def add_line(self, product_id: int, unit_price: Decimal, quantity: int) -> CartItemModel:
        """Merge into the existing line for the product or append a new one."""
        item = self.find_item_by_product(product_id)
        if item:
            item.quantity += quantity
            # repeated adds reprice the line at the current catalog price
            item.price = to_money(unit_price)
        else:
            item = CartItemModel(
                product_id=product_id,
                quantity=quantity,
                price=to_money(unit_price),
            )
            self.items.append(item)

        self.recompute_totals()
        return item

    def set_line_quantity(self, item: CartItemModel, quantity: int) -> None:
        item.quantity = quantity
        self.recompute_totals()

    def remove_line(self, item: CartItemModel) -> None:
        self.items.remove(item)
        self.recompute_totals()

    def clear(self) -> None:
        self.items.clear()
        self.discount_code = None
        self.discount_amount = ZERO
        self.recompute_totals()

    def attach_discount(self, code: str, amount: Decimal) -> None:
        self.discount_code = code
        self.discount_amount = to_money(amount)
        self.recompute_totals()

    def recompute_totals(self) -> None:
        for item in self.items:
            item.recompute_line_total()

        self._subtotal = to_money(sum((i.line_total for i in self.items), ZERO))
        self._total_items = sum(i.quantity for i in self.items)

        discount = to_money(self.discount_amount or ZERO)
        self._total = max(ZERO, to_money(self._subtotal - discount))
