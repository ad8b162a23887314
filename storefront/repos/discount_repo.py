# storefront/repos/discount_repo.py
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError

from storefront.data.models.discount import DiscountModel
from storefront.domain.errors import ValidationError
from storefront.repos.base import BaseRepo


class DiscountRepo(BaseRepo):
    def get_discount(self, discount_id: int) -> DiscountModel | None:
        return self.db.get(DiscountModel, discount_id)

    def get_by_code(self, code: str) -> DiscountModel | None:
        return self.db.execute(
            select(DiscountModel).where(DiscountModel.code == code)
        ).scalar_one_or_none()

    def list_discounts(
        self,
        offset: int,
        limit: int,
        is_active: bool | None = None,
        kind: str | None = None,
    ) -> tuple[list[DiscountModel], int]:
        filters = []
        if is_active is not None:
            filters.append(DiscountModel.is_active == is_active)
        if kind is not None:
            filters.append(DiscountModel.kind == kind)

        total = self.db.execute(
            select(func.count(DiscountModel.id)).where(*filters)
        ).scalar_one()
        rows = self.db.execute(
            select(DiscountModel)
            .where(*filters)
            .order_by(DiscountModel.created_at.desc(), DiscountModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars()
        return list(rows), total

    def save(self, discount: DiscountModel) -> DiscountModel:
        self.db.add(discount)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError("Discount code already exists") from e
        self.commit()
        self.db.refresh(discount)
        return discount

    def delete(self, discount: DiscountModel) -> None:
        self.db.delete(discount)
        self.commit()

    def increment_usage(self, discount_id: int) -> int:
        """Compare-and-increment; 0 rows means the limit was already reached."""
        result = self.db.execute(
            update(DiscountModel)
            .where(
                DiscountModel.id == discount_id,
                or_(
                    DiscountModel.usage_limit.is_(None),
                    DiscountModel.usage_count < DiscountModel.usage_limit,
                ),
            )
            .values(usage_count=DiscountModel.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            # limit reached -> deactivate
            self.db.execute(
                update(DiscountModel)
                .where(
                    and_(
                        DiscountModel.id == discount_id,
                        DiscountModel.usage_limit.is_not(None),
                        DiscountModel.usage_count >= DiscountModel.usage_limit,
                    )
                )
                .values(is_active=False)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount
