# storefront/services/discount_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session

from storefront.data.models.discount import DiscountModel, FIXED, PERCENTAGE, as_utc
from storefront.domain.errors import BusinessRuleViolation, NotFoundError, ValidationError
from storefront.domain.money import ZERO, to_money
from storefront.domain.schemas import DiscountCreate, DiscountUpdate
from storefront.repos.discount_repo import DiscountRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

INVALID_CODE = "Invalid or expired discount code"
USAGE_LIMIT_REACHED = "Discount code usage limit reached"

_NULLABLE_FIELDS = {"max_discount_amount", "usage_limit"}


def normalize_code(code: str) -> str:
    return code.strip().upper()


class DiscountService:
    """
    Discount validation and administration.

    find_applicable / compute_amount are the two operations the cart relies on;
    the rest is admin CRUD and usage counting at checkout.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] | None = None):
        self.repo = DiscountRepo(db)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # query
    def find_applicable(self, code: str) -> DiscountModel:
        discount = self.repo.get_by_code(normalize_code(code))

        if not discount or not discount.is_active or not discount.is_within_window(self.clock()):
            logger.info(f"Discount code {code!r} rejected: unknown, inactive or expired")
            raise BusinessRuleViolation(INVALID_CODE)

        if discount.usage_exhausted():
            logger.info(f"Discount code {discount.code} rejected: usage limit reached")
            raise BusinessRuleViolation(USAGE_LIMIT_REACHED)

        return discount

    @staticmethod
    def compute_amount(discount: DiscountModel, subtotal: Decimal) -> Decimal:
        if discount.kind == PERCENTAGE:
            amount = to_money(Decimal(subtotal) * Decimal(discount.value) / Decimal(100))
            if discount.max_discount_amount is not None:
                amount = min(amount, to_money(discount.max_discount_amount))
            return amount
        # fixed: may exceed the subtotal, the cart total floors at zero
        return to_money(discount.value)

    @staticmethod
    def check_min_purchase(discount: DiscountModel, amount: Decimal) -> None:
        min_purchase = to_money(discount.min_purchase or ZERO)
        if min_purchase > to_money(amount):
            raise BusinessRuleViolation(f"Minimum purchase amount of {min_purchase} required")

    def validate(self, code: str, cart_total: Decimal | None = None) -> DiscountModel:
        discount = self.find_applicable(code)
        if cart_total is not None:
            self.check_min_purchase(discount, cart_total)
        return discount

    def get_discount(self, discount_id: int) -> DiscountModel:
        discount = self.repo.get_discount(discount_id)
        if not discount:
            raise NotFoundError("Discount", discount_id)
        return discount

    def list_discounts(self, offset: int, limit: int, is_active: bool | None = None, kind: str | None = None):
        return self.repo.list_discounts(offset, limit, is_active=is_active, kind=kind)

    # commands
    def create_discount(self, payload: DiscountCreate, created_by: int) -> DiscountModel:
        if self.repo.get_by_code(payload.code):
            raise ValidationError("Discount code already exists")

        data = payload.model_dump()
        if data["valid_from"] is None:
            data["valid_from"] = self.clock()

        discount = DiscountModel(**data, created_by=created_by, usage_count=0)
        self._check_rules(discount)

        created = self.repo.save(discount)
        logger.info(f"Discount {created.code} created by user {created_by}")
        return created

    def update_discount(self, discount_id: int, payload: DiscountUpdate) -> DiscountModel:
        discount = self.get_discount(discount_id)
        changes = {
            field: value
            for field, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or field in _NULLABLE_FIELDS
        }

        new_code = changes.get("code")
        if new_code and new_code != discount.code and self.repo.get_by_code(new_code):
            raise ValidationError("Discount code already exists")

        for field, value in changes.items():
            setattr(discount, field, value)
        self._check_rules(discount)

        updated = self.repo.save(discount)
        logger.info(f"Discount {updated.code} updated")
        return updated

    def delete_discount(self, discount_id: int) -> None:
        discount = self.get_discount(discount_id)
        self.repo.delete(discount)
        logger.info(f"Discount {discount_id} deleted")

    def increment_usage(self, discount: DiscountModel) -> None:
        """Count one redemption. Does not commit, the caller owns the transaction."""
        if not self.repo.increment_usage(discount.id):
            raise BusinessRuleViolation(USAGE_LIMIT_REACHED)
        logger.info(f"Discount {discount.code} usage incremented")

    def _check_rules(self, discount: DiscountModel) -> None:
        error = self._rule_violation(discount)
        if error:
            # drop pending attribute changes on an existing discount
            self.repo.rollback()
            raise ValidationError(error)

        if discount.usage_exhausted():
            discount.is_active = False

    @staticmethod
    def _rule_violation(discount: DiscountModel) -> str | None:
        if as_utc(discount.valid_until) <= as_utc(discount.valid_from):
            return "validUntil must be after validFrom"
        if discount.kind == PERCENTAGE and Decimal(discount.value) > 100:
            return "Percentage discount cannot exceed 100"
        if discount.kind == FIXED and discount.max_discount_amount is not None:
            return "maxDiscountAmount applies to percentage discounts only"
        return None
