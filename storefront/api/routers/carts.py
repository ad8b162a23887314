# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_cart_service, get_current_user
from storefront.domain.identity import CurrentUser
from storefront.domain.schemas import (
    ApiResponse,
    CartOut,
    DiscountCodeIn,
    ItemIn,
    ItemUpdateIn,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=ApiResponse[CartOut])
def get_cart(
    user: CurrentUser = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    """Caller's cart, created empty on first access."""
    return {"success": True, "data": svc.get_cart(user.id)}


@router.post("/items", response_model=ApiResponse[CartOut])
def add_item(
    payload: ItemIn,
    user: CurrentUser = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    """
    Adds a product, or raises the quantity of the line that already holds it.
    The line is repriced at the current catalog price.
    """
    cart = svc.add_item(user.id, payload.product_id, payload.quantity)
    return {"success": True, "data": cart}


@router.put("/items/{item_id}", response_model=ApiResponse[CartOut])
def update_item(
    item_id: int,
    payload: ItemUpdateIn,
    user: CurrentUser = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    cart = svc.update_item(user.id, item_id, payload.quantity)
    return {"success": True, "data": cart}


@router.delete("/items/{item_id}", response_model=ApiResponse[CartOut])
def remove_item(
    item_id: int,
    user: CurrentUser = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    return {"success": True, "data": svc.remove_item(user.id, item_id)}


@router.delete("", response_model=ApiResponse[CartOut])
def clear_cart(
    user: CurrentUser = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    """Empties the cart and drops the applied discount."""
    return {"success": True, "data": svc.clear(user.id)}


@router.post("/discount", response_model=ApiResponse[CartOut])
def apply_discount(
    payload: DiscountCodeIn,
    user: CurrentUser = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    return {"success": True, "data": svc.apply_discount(user.id, payload.code)}
