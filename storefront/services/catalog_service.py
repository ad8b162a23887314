# storefront/services/catalog_service.py
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import NotFoundError
from storefront.domain.schemas import ProductCreate, ProductUpdate
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogService:
    """
    Product lookup used by the cart and order pipeline, plus admin maintenance.
    Carts and orders keep only the product id, so price and stock edits here
    are what the next cart mutation or checkout sees.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    # query
    def get_product(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            logger.info(f"Product {product_id} not found")
            raise NotFoundError("Product", product_id)
        return product

    def find_product(self, product_id: int) -> ProductModel | None:
        return self.repo.get_product(product_id)

    def list_products(self, offset: int, limit: int) -> tuple[list[ProductModel], int]:
        return self.repo.list_products(offset, limit), self.repo.count_products()

    # commands
    def create_product(self, payload: ProductCreate, created_by: int) -> ProductModel:
        product = self.repo.save(ProductModel(**payload.model_dump()))
        logger.info(f"Product {product.id} ({product.name}) created by user {created_by}")
        return product

    def update_product(self, product_id: int, payload: ProductUpdate) -> ProductModel:
        product = self.get_product(product_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(product, field, value)

        updated = self.repo.save(product)
        logger.info(f"Product {product_id} updated: {changes}")
        return updated

    def delete_product(self, product_id: int) -> None:
        product = self.get_product(product_id)
        self.repo.delete(product)
        logger.info(f"Product {product_id} deleted")
