# storefront/api/routers/orders.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from storefront.api.deps import PageParams, get_current_user, get_order_service
from storefront.domain.identity import CurrentUser
from storefront.domain.schemas import (
    ApiResponse,
    CheckoutIn,
    MessageResponse,
    OrderCreate,
    OrderOut,
    OrderStatus,
    PagedResponse,
)
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=ApiResponse[OrderOut], status_code=201)
def create_order(
    payload: OrderCreate,
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    """
    Order from an explicit item list.
    Prices are frozen at the current catalog price, the notification goes out asynchronously.
    """
    order = svc.create_order(
        user,
        [(i.product, i.quantity) for i in payload.items],
        payload.shipping_address.model_dump(by_alias=True),
        payload.payment_method,
    )
    return {"success": True, "data": order}


@router.post("/checkout", response_model=ApiResponse[OrderOut], status_code=201)
def checkout(
    payload: CheckoutIn,
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    """Order from the caller's cart, carrying its applied discount."""
    order = svc.checkout_cart(
        user,
        payload.shipping_address.model_dump(by_alias=True),
        payload.payment_method,
    )
    return {"success": True, "data": order}


@router.get("", response_model=PagedResponse[OrderOut])
def list_orders(
    status: Optional[OrderStatus] = Query(None),
    page: PageParams = Depends(),
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    orders, total = svc.list_orders(user, page.offset, page.limit, status=status)
    return {
        "success": True,
        "count": len(orders),
        "pagination": page.pagination(total),
        "data": orders,
    }


# must stay above /{order_id}
@router.get("/me", response_model=PagedResponse[OrderOut])
def my_orders(
    page: PageParams = Depends(),
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    orders, total = svc.list_user_orders(user, page.offset, page.limit)
    return {
        "success": True,
        "count": len(orders),
        "pagination": page.pagination(total),
        "data": orders,
    }


@router.get("/{order_id}", response_model=ApiResponse[OrderOut])
def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    return {"success": True, "data": svc.get_order(order_id, user)}


@router.put("/{order_id}", response_model=ApiResponse[OrderOut])
def update_order(
    order_id: int,
    changes: Dict[str, Any] = Body(...),
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    """Only orderStatus / paymentStatus; any other key is rejected."""
    return {"success": True, "data": svc.update_status(order_id, user, changes)}


@router.delete("/{order_id}", response_model=MessageResponse)
def delete_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    svc.delete_order(order_id, user)
    return {"success": True, "message": "Order deleted"}
