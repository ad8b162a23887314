# storefront/api/deps.py
from typing import Optional

from fastapi import Depends, Header, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import AuthorizationError, ForbiddenError, ValidationError
from storefront.domain.identity import ADMIN, ROLES, USER, CurrentUser
from storefront.domain.schemas import Pagination
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.discount_service import DiscountService
from storefront.services.lock_service import LockService
from storefront.services.order_service import OrderService
from storefront.utils.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> CurrentUser:
    """
    Identity set by the upstream auth gate.
    Missing id -> 401, malformed id or unknown role -> 400.
    """
    if not x_user_id:
        raise AuthorizationError()
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise ValidationError("Invalid X-User-Id header: must be a positive integer") from None
    if user_id <= 0:
        raise ValidationError("Invalid X-User-Id header: must be a positive integer")

    role = (x_user_role or USER).strip().lower()
    if role not in ROLES:
        raise ValidationError(f"Invalid X-User-Role header: must be one of {', '.join(ROLES)}")

    return CurrentUser(id=user_id, role=role)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role != ADMIN:
        raise ForbiddenError(f"User role {user.role} is not authorized to access this route")
    return user


class PageParams:
    """?page=&limit= query parameters, 1-based page."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    ):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def pagination(self, total: int) -> Pagination:
        return Pagination(
            page=self.page,
            limit=self.limit,
            total=total,
            next=self.page + 1 if self.offset + self.limit < total else None,
            prev=self.page - 1 if self.page > 1 else None,
        )


# services, one set per request

def get_lock_service() -> LockService:
    return LockService()


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_discount_service(db: Session = Depends(get_db)) -> DiscountService:
    return DiscountService(db)


def get_cart_service(
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
    discounts: DiscountService = Depends(get_discount_service),
) -> CartService:
    return CartService(db=db, catalog=catalog, discounts=discounts)


def get_order_service(
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
    discounts: DiscountService = Depends(get_discount_service),
    lock_service: LockService = Depends(get_lock_service),
) -> OrderService:
    return OrderService(
        db=db,
        catalog=catalog,
        discounts=discounts,
        lock_service=lock_service,
    )
