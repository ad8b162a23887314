# storefront/services/order_service.py
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Tuple

import redis
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel, OrderItemModel
from storefront.domain.errors import (
    ConflictError,
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from storefront.domain.identity import CurrentUser
from storefront.domain.money import ZERO, to_money
from storefront.domain.schemas import OrderStatusUpdate
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.catalog_service import CatalogService
from storefront.services.discount_service import DiscountService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.utils.settings import CHECKOUT_LOCK_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_STATUS_FIELDS = {"orderStatus", "paymentStatus", "order_status", "payment_status"}


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "owner_user_id": order.user_id,
        "items": [
            {
                "product_id": i.product_id,
                "quantity": i.quantity,
                "unit_price_at_purchase": i.unit_price_at_purchase,
            }
            for i in order.items
        ],
        "total_amount": order.total_amount,
        "discount_code": order.discount_code,
        "discount_amount": order.discount_amount,
        "shipping_address": order.shipping_address,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "order_status": order.order_status,
        "created_at": order.created_at,
    }


class OrderService:
    """
    Order domain: turns a cart or an explicit item list into an immutable order.

    Placing an order runs under a per-user Redis lock and inside one DB
    transaction: stock check, price freeze, atomic stock decrement, discount
    usage, order insert. Any failure rolls the whole thing back.
    """

    def __init__(
        self,
        db: Session,
        catalog: CatalogService,
        discounts: DiscountService,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
    ):
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.carts = CartRepo(db)
        self.catalog = catalog
        self.discounts = discounts
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()

    # commands
    def create_order(
        self,
        user: CurrentUser,
        items: Iterable[Tuple[int, int]],
        shipping_address: Dict[str, Any],
        payment_method: str,
    ) -> Dict[str, Any]:
        """
        Use Case: order from an explicit list of (product_id, quantity).
        """
        lines = list(items)
        if not lines:
            raise ValidationError("Order must contain at least one item")

        with self._checkout_lock(user.id):
            order = self._place_order(user.id, lines, shipping_address, payment_method)

        return self._after_commit(order)

    def checkout_cart(
        self,
        user: CurrentUser,
        shipping_address: Dict[str, Any],
        payment_method: str,
    ) -> Dict[str, Any]:
        """
        Use Case: order from the caller's cart.

        The applied discount is copied onto the order and its usage counted,
        the cart itself is left as it is.
        """
        with self._checkout_lock(user.id):
            cart = self.carts.get_cart_by_user(user.id)
            if not cart or not cart.items:
                raise ValidationError("Cart is empty")

            lines = [(i.product_id, i.quantity) for i in cart.items]
            logger.info(f"Checking out cart {cart.id} for user {user.id} ({len(lines)} lines)")

            order = self._place_order(
                user.id,
                lines,
                shipping_address,
                payment_method,
                discount_code=cart.discount_code,
                discount_amount=cart.discount_amount if cart.discount_code else None,
            )

        return self._after_commit(order)

    def update_status(self, order_id: int, user: CurrentUser, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Only orderStatus and paymentStatus may change after creation."""
        if not changes or not set(changes) <= _STATUS_FIELDS:
            raise ValidationError("Invalid updates")

        try:
            payload = OrderStatusUpdate.model_validate(changes)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid updates",
                field_errors=[
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ],
            ) from e
        order = self._get_owned(order_id, user, "update")

        updated = self.repo.update_order_status(order, payload.model_dump(exclude_none=True))
        logger.info(f"Order {order_id} status updated by user {user.id}: {payload.model_dump(exclude_none=True)}")
        return order_to_dict(updated)

    def delete_order(self, order_id: int, user: CurrentUser) -> None:
        order = self._get_owned(order_id, user, "delete")
        self.repo.delete_order(order)
        logger.info(f"Order {order_id} deleted by user {user.id}")

    # queries
    def get_order(self, order_id: int, user: CurrentUser) -> Dict[str, Any]:
        return order_to_dict(self._get_owned(order_id, user, "access"))

    def list_orders(
        self,
        user: CurrentUser,
        offset: int,
        limit: int,
        status: str | None = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        if not user.is_admin:
            raise ForbiddenError(f"User role {user.role} is not authorized to access this route")
        orders, total = self.repo.list_orders(offset, limit, status=status)
        return [order_to_dict(o) for o in orders], total

    def list_user_orders(self, user: CurrentUser, offset: int, limit: int) -> Tuple[List[Dict[str, Any]], int]:
        orders, total = self.repo.list_orders(offset, limit, user_id=user.id)
        return [order_to_dict(o) for o in orders], total

    # helpers
    def _place_order(
        self,
        user_id: int,
        lines: List[Tuple[int, int]],
        shipping_address: Dict[str, Any],
        payment_method: str,
        discount_code: str | None = None,
        discount_amount: Decimal | None = None,
    ) -> OrderModel:
        try:
            order_items = []
            total = ZERO

            for product_id, quantity in lines:
                if quantity < 1:
                    raise ValidationError("Quantity must be at least 1")

                # current catalog state, not what the cart saw
                product = self.catalog.get_product(product_id)
                if quantity > product.stock:
                    raise InsufficientStockError(product.id, product.stock, quantity)

                price = to_money(product.price)
                order_items.append(
                    OrderItemModel(
                        product_id=product.id,
                        quantity=quantity,
                        unit_price_at_purchase=price,
                    )
                )
                total += price * quantity

            # TODO: decide whether the cart discount should reduce totalAmount or be
            # settled separately; for now the order keeps the undiscounted sum and
            # only records discount_code / discount_amount
            total_amount = to_money(total)

            for item in order_items:
                if not self.products.decrement_stock(item.product_id, item.quantity):
                    available = self.products.current_stock(item.product_id) or 0
                    logger.warning(f"Stock race lost on product {item.product_id}")
                    raise InsufficientStockError(item.product_id, available, item.quantity)

            if discount_code:
                discount = self.discounts.repo.get_by_code(discount_code)
                if discount:
                    self.discounts.increment_usage(discount)

            order = OrderModel(
                user_id=user_id,
                items=order_items,
                total_amount=total_amount,
                discount_code=discount_code,
                discount_amount=to_money(discount_amount) if discount_amount is not None else None,
                shipping_address=shipping_address,
                payment_method=payment_method,
                payment_status="pending",
                order_status="processing",
            )
            self.repo.add_order(order)
            self.repo.commit()

        except Exception as e:
            logger.error(f"Placing order for user {user_id} failed: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Order {order.id} created for user {user_id}, total {total_amount}")
        return order

    def _after_commit(self, order: OrderModel) -> Dict[str, Any]:
        self.notification_service.send_order_notification(order.user_id, order.id, order.total_amount)
        return order_to_dict(order)

    def _get_owned(self, order_id: int, user: CurrentUser, action: str) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order", order_id)
        if not user.can_access(order.user_id):
            raise ForbiddenError(f"Not authorized to {action} this order")
        return order

    @contextmanager
    def _checkout_lock(self, user_id: int):
        token = self.lock_service.acquire_checkout_lock(user_id, CHECKOUT_LOCK_TTL_SECONDS)
        if not token:
            raise ConflictError("A checkout for this user is already in progress")
        try:
            yield
        finally:
            try:
                self.lock_service.release_checkout_lock(user_id, token)
            except redis.RedisError as e:
                # the lock expires on its own after the TTL
                logger.error(f"Could not release checkout lock for user {user_id}: {e}")
