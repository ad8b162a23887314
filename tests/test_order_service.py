from decimal import Decimal

import pytest
import redis

from storefront.data.models import OrderModel
from storefront.domain.errors import (
    BusinessRuleViolation,
    ConflictError,
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from storefront.domain.identity import CurrentUser
from storefront.repos.product_repo import ProductRepo

ADDRESS = {"street": "1 Main St", "city": "Springfield", "state": "IL", "zipCode": "62701", "country": "US"}


def _order_count(db):
    return db.query(OrderModel).count()


def test_create_order(db, order_service, user, make_product):
    a = make_product(name="A", price="10.00", stock=5)
    b = make_product(name="B", price="2.50", stock=5)

    order = order_service.create_order(user, [(a.id, 2), (b.id, 4)], ADDRESS, "card")

    assert order["owner_user_id"] == user.id
    assert order["total_amount"] == Decimal("30.00")
    assert order["payment_status"] == "pending"
    assert order["order_status"] == "processing"
    assert [i["unit_price_at_purchase"] for i in order["items"]] == [Decimal("10.00"), Decimal("2.50")]

    db.refresh(a)
    db.refresh(b)
    assert (a.stock, b.stock) == (3, 1)


def test_create_order_unknown_product(db, order_service, user):
    with pytest.raises(NotFoundError):
        order_service.create_order(user, [(404, 1)], ADDRESS, "card")
    assert _order_count(db) == 0


def test_checkout_over_stock_persists_nothing(db, order_service, cart_service, user, make_product):
    product = make_product(stock=5)
    cart_service.add_item(user.id, product.id, 4)
    product.stock = 3
    db.commit()

    with pytest.raises(InsufficientStockError):
        order_service.checkout_cart(user, ADDRESS, "card")

    assert _order_count(db) == 0
    db.refresh(product)
    assert product.stock == 3


def test_lost_stock_race_rolls_back(db, order_service, user, make_product, monkeypatch):
    first = make_product(name="A", stock=5)
    second = make_product(name="B", stock=5)
    real_decrement = ProductRepo.decrement_stock

    def decrement(self, product_id, quantity):
        # someone else bought the second product in between
        if product_id == second.id:
            return 0
        return real_decrement(self, product_id, quantity)

    monkeypatch.setattr(ProductRepo, "decrement_stock", decrement)

    with pytest.raises(InsufficientStockError):
        order_service.create_order(user, [(first.id, 1), (second.id, 1)], ADDRESS, "card")

    assert _order_count(db) == 0
    db.refresh(first)
    assert first.stock == 5


def test_checkout_freezes_current_catalog_price(db, order_service, cart_service, user, make_product):
    product = make_product(price="10.00", stock=5)
    cart_service.add_item(user.id, product.id, 2)
    product.price = Decimal("11.00")
    db.commit()

    order = order_service.checkout_cart(user, ADDRESS, "card")

    assert cart_service.get_cart(user.id)["items"][0]["unit_price"] == Decimal("10.00")
    assert order["items"][0]["unit_price_at_purchase"] == Decimal("11.00")
    assert order["total_amount"] == Decimal("22.00")


def test_checkout_total_ignores_cart_discount(db, order_service, cart_service, user, make_product, make_discount):
    """Known behavior: the order total is the undiscounted sum, the discount is only recorded."""
    product = make_product(price="10.00", stock=5)
    discount = make_discount(code="FIVEOFF", kind="fixed", value="5.00")
    cart_service.add_item(user.id, product.id, 2)
    cart = cart_service.apply_discount(user.id, "FIVEOFF")
    assert cart["total"] == Decimal("15.00")

    order = order_service.checkout_cart(user, ADDRESS, "card")

    assert order["total_amount"] == Decimal("20.00")
    assert order["discount_code"] == "FIVEOFF"
    assert order["discount_amount"] == Decimal("5.00")

    db.refresh(discount)
    assert discount.usage_count == 1


def test_checkout_leaves_cart_as_is(order_service, cart_service, user, make_product):
    product = make_product(stock=5)
    cart_service.add_item(user.id, product.id, 1)

    order_service.checkout_cart(user, ADDRESS, "card")

    assert len(cart_service.get_cart(user.id)["items"]) == 1


def test_checkout_counts_usage_until_limit(db, order_service, cart_service, make_product, make_discount):
    product = make_product(price="10.00", stock=10)
    discount = make_discount(code="ONCE", usage_limit=1)
    first, second = CurrentUser(id=1), CurrentUser(id=2)
    for u in (first, second):
        cart_service.add_item(u.id, product.id, 1)
        cart_service.apply_discount(u.id, "ONCE")

    order_service.checkout_cart(first, ADDRESS, "card")
    db.refresh(discount)
    assert discount.usage_count == 1
    assert discount.is_active is False

    with pytest.raises(BusinessRuleViolation) as exc:
        order_service.checkout_cart(second, ADDRESS, "card")
    assert exc.value.message == "Discount code usage limit reached"
    assert _order_count(db) == 1


def test_checkout_empty_cart(order_service, user):
    with pytest.raises(ValidationError) as exc:
        order_service.checkout_cart(user, ADDRESS, "card")
    assert exc.value.message == "Cart is empty"


def test_concurrent_checkout_conflicts(order_service, lock_service, cart_service, user, make_product):
    product = make_product(stock=5)
    cart_service.add_item(user.id, product.id, 1)
    token = lock_service.acquire_checkout_lock(user.id, 30)

    with pytest.raises(ConflictError):
        order_service.checkout_cart(user, ADDRESS, "card")

    lock_service.release_checkout_lock(user.id, token)
    assert order_service.checkout_cart(user, ADDRESS, "card")["owner_user_id"] == user.id


def test_lock_released_after_failure(order_service, lock_service, user, redis_client):
    with pytest.raises(ValidationError):
        order_service.checkout_cart(user, ADDRESS, "card")

    assert redis_client.get(lock_service.checkout_key(user.id)) is None


def test_checkout_queues_notification(order_service, cart_service, user, make_product, monkeypatch):
    sent = []
    monkeypatch.setattr(
        order_service.notification_service,
        "send_order_notification",
        lambda user_id, order_id, total: sent.append((user_id, order_id, total)),
    )
    product = make_product(price="3.00", stock=5)
    cart_service.add_item(user.id, product.id, 1)

    order = order_service.checkout_cart(user, ADDRESS, "card")

    assert sent == [(user.id, order["id"], Decimal("3.00"))]


class TestOrderAccess:
    @pytest.fixture
    def order(self, order_service, user, make_product):
        product = make_product(stock=5)
        return order_service.create_order(user, [(product.id, 1)], ADDRESS, "card")

    def test_owner_and_admin_can_read(self, order_service, order, user, admin):
        assert order_service.get_order(order["id"], user)["id"] == order["id"]
        assert order_service.get_order(order["id"], admin)["id"] == order["id"]

    def test_other_user_forbidden(self, order_service, order):
        with pytest.raises(ForbiddenError):
            order_service.get_order(order["id"], CurrentUser(id=2))

    def test_update_status(self, order_service, order, admin):
        updated = order_service.update_status(order["id"], admin, {"orderStatus": "shipped", "paymentStatus": "completed"})

        assert updated["order_status"] == "shipped"
        assert updated["payment_status"] == "completed"

    def test_update_other_fields_rejected(self, order_service, order, user):
        with pytest.raises(ValidationError) as exc:
            order_service.update_status(order["id"], user, {"totalAmount": "0"})
        assert exc.value.message == "Invalid updates"

    def test_update_unknown_status_rejected(self, order_service, order, user):
        with pytest.raises(ValidationError) as exc:
            order_service.update_status(order["id"], user, {"orderStatus": "lost"})
        assert exc.value.field_errors

    def test_delete(self, order_service, order, user):
        order_service.delete_order(order["id"], user)

        with pytest.raises(NotFoundError):
            order_service.get_order(order["id"], user)

    def test_list_requires_admin(self, order_service, order, user, admin):
        with pytest.raises(ForbiddenError):
            order_service.list_orders(user, 0, 10)

        orders, total = order_service.list_orders(admin, 0, 10, status="processing")
        assert total == 1
        assert orders[0]["id"] == order["id"]

    def test_list_user_orders(self, order_service, order, user):
        orders, total = order_service.list_user_orders(user, 0, 10)
        assert total == 1

        others, total = order_service.list_user_orders(CurrentUser(id=2), 0, 10)
        assert (others, total) == ([], 0)


def test_discount_kept_when_cart_drops_below_min_purchase(order_service, cart_service, user, make_product, make_discount):
    """minPurchase is only checked when the code is applied."""
    product = make_product(price="30.00", stock=5)
    make_discount(code="BIG", kind="fixed", value="10.00", min_purchase=Decimal("50.00"))
    cart = cart_service.add_item(user.id, product.id, 2)
    cart_service.apply_discount(user.id, "BIG")

    cart = cart_service.update_item(user.id, cart["items"][0]["id"], 1)

    assert cart["subtotal"] == Decimal("30.00")
    assert cart["applied_discount"] == {"code": "BIG", "amount": Decimal("10.00")}
    assert cart["total"] == Decimal("20.00")

    order = order_service.checkout_cart(user, ADDRESS, "card")
    assert order["discount_code"] == "BIG"
    assert order["discount_amount"] == Decimal("10.00")


def test_lock_release_failure_keeps_original_error(db, order_service, lock_service, user, make_product, monkeypatch):
    product = make_product(stock=1)

    def broken_release(user_id, token):
        raise redis.ConnectionError("redis went away")

    monkeypatch.setattr(lock_service, "release_checkout_lock", broken_release)

    with pytest.raises(InsufficientStockError):
        order_service.create_order(user, [(product.id, 2)], ADDRESS, "card")

    assert _order_count(db) == 0
