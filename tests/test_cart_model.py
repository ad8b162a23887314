from decimal import Decimal

from storefront.data.models import CartModel


def _cart():
    cart = CartModel(user_id=1, version=1)
    cart.recompute_totals()
    return cart


def test_empty_cart_totals_are_zero():
    cart = _cart()
    assert cart.subtotal == Decimal("0.00")
    assert cart.total == Decimal("0.00")
    assert cart.total_items == 0
    assert cart.applied_discount is None


def test_new_line_total_is_price_times_quantity():
    cart = _cart()
    item = cart.add_line(1, Decimal("19.99"), 3)

    assert len(cart.items) == 1
    assert item.line_total == Decimal("59.97")
    assert cart.subtotal == Decimal("59.97")
    assert cart.total_items == 3


def test_adding_same_product_merges_and_reprices():
    cart = _cart()
    cart.add_line(1, Decimal("10.00"), 1)
    cart.add_line(1, Decimal("12.50"), 2)

    assert len(cart.items) == 1
    item = cart.items[0]
    assert item.quantity == 3
    assert item.price == Decimal("12.50")
    assert item.line_total == Decimal("37.50")


def test_totals_stay_consistent_across_mutations():
    cart = _cart()
    a = cart.add_line(1, Decimal("0.10"), 3)
    cart.add_line(2, Decimal("0.20"), 7)
    cart.set_line_quantity(a, 11)
    cart.attach_discount("FIX", Decimal("0.35"))
    cart.add_line(3, Decimal("1.05"), 1)
    cart.remove_line(cart.find_item_by_product(2))

    assert cart.subtotal == sum((i.line_total for i in cart.items), Decimal("0"))
    assert cart.subtotal == Decimal("2.15")
    assert cart.total == Decimal("1.80")
    assert cart.total_items == 12


def test_total_floors_at_zero():
    cart = _cart()
    cart.add_line(1, Decimal("5.00"), 1)
    cart.attach_discount("BIG", Decimal("50.00"))

    assert cart.total == Decimal("0.00")
    assert cart.applied_discount == {"code": "BIG", "amount": Decimal("50.00")}


def test_clear_drops_items_and_discount():
    cart = _cart()
    cart.add_line(1, Decimal("5.00"), 2)
    cart.attach_discount("FIX", Decimal("1.00"))

    cart.clear()

    assert cart.items == []
    assert cart.applied_discount is None
    assert cart.subtotal == Decimal("0.00")
    assert cart.total == Decimal("0.00")
