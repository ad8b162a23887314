# storefront/api/routers/discounts.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.api.deps import PageParams, get_current_user, get_discount_service, require_admin
from storefront.domain.identity import CurrentUser
from storefront.domain.schemas import (
    ApiResponse,
    DiscountCreate,
    DiscountKind,
    DiscountOut,
    DiscountUpdate,
    DiscountValidateIn,
    MessageResponse,
    PagedResponse,
)
from storefront.services.discount_service import DiscountService

router = APIRouter(prefix="/discounts", tags=["discounts"])


@router.post("/validate", response_model=ApiResponse[DiscountOut])
def validate_discount(
    payload: DiscountValidateIn,
    user: CurrentUser = Depends(get_current_user),
    svc: DiscountService = Depends(get_discount_service),
):
    """Checks a code without applying it; minPurchase only when cartTotal is given."""
    return {"success": True, "data": svc.validate(payload.code, payload.cart_total)}


# admin

@router.get("", response_model=PagedResponse[DiscountOut])
def list_discounts(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    kind: Optional[DiscountKind] = Query(None),
    page: PageParams = Depends(),
    admin: CurrentUser = Depends(require_admin),
    svc: DiscountService = Depends(get_discount_service),
):
    discounts, total = svc.list_discounts(page.offset, page.limit, is_active=is_active, kind=kind)
    return {
        "success": True,
        "count": len(discounts),
        "pagination": page.pagination(total),
        "data": discounts,
    }


@router.post("", response_model=ApiResponse[DiscountOut], status_code=201)
def create_discount(
    payload: DiscountCreate,
    admin: CurrentUser = Depends(require_admin),
    svc: DiscountService = Depends(get_discount_service),
):
    return {"success": True, "data": svc.create_discount(payload, created_by=admin.id)}


@router.get("/{discount_id}", response_model=ApiResponse[DiscountOut])
def get_discount(
    discount_id: int,
    admin: CurrentUser = Depends(require_admin),
    svc: DiscountService = Depends(get_discount_service),
):
    return {"success": True, "data": svc.get_discount(discount_id)}


@router.put("/{discount_id}", response_model=ApiResponse[DiscountOut])
def update_discount(
    discount_id: int,
    payload: DiscountUpdate,
    admin: CurrentUser = Depends(require_admin),
    svc: DiscountService = Depends(get_discount_service),
):
    return {"success": True, "data": svc.update_discount(discount_id, payload)}


@router.delete("/{discount_id}", response_model=MessageResponse)
def delete_discount(
    discount_id: int,
    admin: CurrentUser = Depends(require_admin),
    svc: DiscountService = Depends(get_discount_service),
):
    svc.delete_discount(discount_id)
    return {"success": True, "message": "Discount deleted"}
