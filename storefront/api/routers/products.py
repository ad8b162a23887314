# storefront/api/routers/products.py
from fastapi import APIRouter, Depends

from storefront.api.deps import PageParams, get_catalog_service, require_admin
from storefront.domain.identity import CurrentUser
from storefront.domain.schemas import (
    ApiResponse,
    MessageResponse,
    PagedResponse,
    ProductCreate,
    ProductOut,
    ProductUpdate,
)
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=PagedResponse[ProductOut])
def list_products(
    page: PageParams = Depends(),
    svc: CatalogService = Depends(get_catalog_service),
):
    products, total = svc.list_products(page.offset, page.limit)
    return {
        "success": True,
        "count": len(products),
        "pagination": page.pagination(total),
        "data": products,
    }


@router.get("/{product_id}", response_model=ApiResponse[ProductOut])
def get_product(product_id: int, svc: CatalogService = Depends(get_catalog_service)):
    return {"success": True, "data": svc.get_product(product_id)}


# admin

@router.post("", response_model=ApiResponse[ProductOut], status_code=201)
def create_product(
    payload: ProductCreate,
    admin: CurrentUser = Depends(require_admin),
    svc: CatalogService = Depends(get_catalog_service),
):
    return {"success": True, "data": svc.create_product(payload, created_by=admin.id)}


@router.put("/{product_id}", response_model=ApiResponse[ProductOut])
def update_product(
    product_id: int,
    payload: ProductUpdate,
    admin: CurrentUser = Depends(require_admin),
    svc: CatalogService = Depends(get_catalog_service),
):
    """Price and stock changes apply to the next cart mutation or checkout, not to existing lines."""
    return {"success": True, "data": svc.update_product(product_id, payload)}


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: int,
    admin: CurrentUser = Depends(require_admin),
    svc: CatalogService = Depends(get_catalog_service),
):
    svc.delete_product(product_id)
    return {"success": True, "message": "Product deleted"}
