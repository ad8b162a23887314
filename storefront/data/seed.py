# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import ProductModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_PRODUCTS = [
    {"name": "Keyboard", "price": Decimal("199.99"), "stock": 25},
    {"name": "Mouse", "price": Decimal("49.50"), "stock": 100},
    {"name": "Monitor", "price": Decimal("899.00"), "stock": 10},
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            logger.info("Products already present, skipping seed")
            return
        db.add_all(ProductModel(**p) for p in DEMO_PRODUCTS)
        db.commit()
        logger.info(f"Seeded {len(DEMO_PRODUCTS)} products")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
