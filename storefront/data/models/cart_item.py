# storefront/data/models/cart_item.py
from sqlalchemy import Column, Integer, ForeignKey, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.domain.money import ZERO, to_money


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False)
    # unit price snapshot
    price = Column(Numeric(10, 2), nullable=False)
    _line_total = Column("line_total", Numeric(10, 2), nullable=False, default=ZERO)

    cart = relationship("CartModel", back_populates="items")

    @property
    def line_total(self):
        return self._line_total

    def recompute_line_total(self) -> None:
        self._line_total = to_money(to_money(self.price) * self.quantity)
