# storefront/data/models/discount.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric

from storefront.data.database import Base
from storefront.domain.money import ZERO

PERCENTAGE = "percentage"
FIXED = "fixed"


def _utcnow():
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # sqlite drops the tzinfo; naive values are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DiscountModel(Base):
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True)
    code = Column(String(20), nullable=False, unique=True, index=True)
    description = Column(String, nullable=False, default="")

    kind = Column(String, nullable=False)
    value = Column(Numeric(10, 2), nullable=False)
    max_discount_amount = Column(Numeric(10, 2), nullable=True)
    min_purchase = Column(Numeric(10, 2), nullable=False, default=ZERO)

    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    valid_from = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    valid_until = Column(DateTime(timezone=True), nullable=False)

    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def is_within_window(self, now: datetime) -> bool:
        return as_utc(self.valid_from) <= as_utc(now) <= as_utc(self.valid_until)

    def usage_exhausted(self) -> bool:
        return self.usage_limit is not None and (self.usage_count or 0) >= self.usage_limit
