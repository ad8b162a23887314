# storefront/repos/product_repo.py
from sqlalchemy import func, select, update

from storefront.data.models.product import ProductModel
from storefront.repos.base import BaseRepo


class ProductRepo(BaseRepo):
    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def list_products(self, offset: int, limit: int) -> list[ProductModel]:
        return list(
            self.db.execute(
                select(ProductModel).order_by(ProductModel.id).offset(offset).limit(limit)
            ).scalars()
        )

    def count_products(self) -> int:
        return self.db.execute(select(func.count(ProductModel.id))).scalar_one()

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        """
        Compare-and-decrement. Returns the number of rows updated:
        0 means the row is gone or its stock dropped below `quantity`.
        """
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= quantity)
            .values(stock=ProductModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def current_stock(self, product_id: int) -> int | None:
        # bypasses the identity map, decrement_stock does not synchronize it
        return self.db.execute(
            select(ProductModel.stock).where(ProductModel.id == product_id)
        ).scalar_one_or_none()

    def save(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.commit()
        self.db.refresh(product)
        return product

    def delete(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.commit()
