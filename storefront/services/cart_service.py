# storefront/services/cart_service.py
from datetime import datetime, timezone
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.domain.errors import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from storefront.repos.cart_repo import CartRepo
from storefront.services.catalog_service import CatalogService
from storefront.services.discount_service import DiscountService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def cart_to_dict(cart: CartModel) -> Dict[str, Any]:
    return {
        "id": cart.id,
        "owner_user_id": cart.user_id,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "quantity": i.quantity,
                "unit_price": i.price,
                "line_total": i.line_total,
            }
            for i in cart.items
        ],
        "applied_discount": cart.applied_discount,
        "subtotal": cart.subtotal,
        "total": cart.total,
        "total_items": cart.total_items,
    }


class CartService:
    """
    Use cases for the per-user cart.
    commands (add, update, remove, clear, apply discount) change state and
    commit behind an optimistic version check, query (get) only reads
    (and lazily creates the cart).
    """

    def __init__(
        self,
        db: Session,
        catalog: CatalogService,
        discounts: DiscountService,
    ):
        self.repo = CartRepo(db)
        self.catalog = catalog
        self.discounts = discounts

    # query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        return cart_to_dict(self._get_or_create(user_id))

    # commands
    def add_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity)

        product = self.catalog.get_product(product_id)
        # checked against total stock, nothing is reserved per cart
        if quantity > product.stock:
            raise InsufficientStockError(product.id, product.stock, quantity)

        cart = self._get_or_create(user_id)
        version = cart.version

        existing = cart.find_item_by_product(product_id)
        if existing:
            logger.info(
                f"Product {product_id} already in cart {cart.id}, raising quantity "
                f"from {existing.quantity} to {existing.quantity + quantity}"
            )
        else:
            logger.info(f"Adding product {product_id} to cart {cart.id}")

        cart.add_line(product.id, product.price, quantity)
        self._commit_mutation(cart, version)

        return cart_to_dict(cart)

    def update_item(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity)

        cart = self._require_cart(user_id)
        item = cart.find_item(item_id)
        if not item:
            raise NotFoundError("Cart item", item_id)

        # a product deleted since it was added counts as out of stock
        product = self.catalog.find_product(item.product_id)
        available = product.stock if product else 0
        if quantity > available:
            raise InsufficientStockError(item.product_id, available, quantity)

        version = cart.version
        logger.info(f"Setting quantity of item {item_id} in cart {cart.id} to {quantity}")

        # keeps the line's price snapshot
        cart.set_line_quantity(item, quantity)
        self._commit_mutation(cart, version)

        return cart_to_dict(cart)

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        cart = self._require_cart(user_id)
        item = cart.find_item(item_id)
        if not item:
            raise NotFoundError("Cart item", item_id)

        version = cart.version
        logger.info(f"Removing item {item_id} from cart {cart.id}")

        cart.remove_line(item)
        self._commit_mutation(cart, version)

        return cart_to_dict(cart)

    def clear(self, user_id: int) -> Dict[str, Any]:
        cart = self._require_cart(user_id)
        version = cart.version

        logger.info(f"Clearing cart {cart.id}")
        cart.clear()
        self._commit_mutation(cart, version)

        return cart_to_dict(cart)

    def apply_discount(self, user_id: int, code: str) -> Dict[str, Any]:
        discount = self.discounts.find_applicable(code)
        cart = self._require_cart(user_id)

        # minPurchase only checked here, not again at checkout
        self.discounts.check_min_purchase(discount, cart.subtotal)
        amount = self.discounts.compute_amount(discount, cart.subtotal)

        version = cart.version
        logger.info(f"Applying discount {discount.code} ({amount}) to cart {cart.id}")

        # usage is counted at checkout, not here
        cart.attach_discount(discount.code, amount)
        self._commit_mutation(cart, version)

        return cart_to_dict(cart)

    # helpers
    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

    def _get_or_create(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        cart = CartModel(user_id=user_id, version=1)
        cart.recompute_totals()
        created = self.repo.create_cart(cart)
        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    def _require_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart")
        return cart

    def _commit_mutation(self, cart: CartModel, old_version: int) -> None:
        # optimistic locking, e.g. UPDATE carts SET version = 2 WHERE id = 1 AND version = 1
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=old_version,
            new_data={
                "version": old_version + 1,
                "updated_at": datetime.now(timezone.utc),
            },
        )

        if rowcount == 0:
            self.repo.rollback()
            logger.warning(f"Version conflict on cart {cart.id} (expected version {old_version})")
            raise ConflictError("Cart was modified by another request")

        self.repo.commit()
        logger.info(f"Cart {cart.id} saved, new version: {old_version + 1}")
