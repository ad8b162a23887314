"""Pytest fixtures for storefront tests."""

import os

# before any storefront import: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import fakeredis
import pytest
from fastapi.testclient import TestClient

from storefront.api.deps import get_lock_service
from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import DiscountModel, ProductModel
from storefront.domain.identity import CurrentUser
from storefront.main import app
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.discount_service import DiscountService
from storefront.services.lock_service import LockService
from storefront.services.order_service import OrderService

NOW = datetime.now(timezone.utc)


@pytest.fixture(autouse=True)
def tables():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_product(db):
    def _make(name="Widget", price="10.00", stock=10):
        product = ProductModel(name=name, price=Decimal(price), stock=stock)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_discount(db):
    def _make(code="SAVE10", kind="percentage", value="10", **overrides):
        fields = {
            "description": "",
            "min_purchase": Decimal("0"),
            "usage_count": 0,
            "is_active": True,
            "valid_from": NOW - timedelta(days=1),
            "valid_until": NOW + timedelta(days=30),
        }
        fields.update(overrides)
        discount = DiscountModel(code=code, kind=kind, value=Decimal(value), **fields)
        db.add(discount)
        db.commit()
        db.refresh(discount)
        return discount

    return _make


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def lock_service(redis_client):
    return LockService(client=redis_client)


@pytest.fixture
def user():
    return CurrentUser(id=1)


@pytest.fixture
def admin():
    return CurrentUser(id=99, role="admin")


@pytest.fixture
def catalog(db):
    return CatalogService(db)


@pytest.fixture
def discounts(db):
    return DiscountService(db)


@pytest.fixture
def cart_service(db, catalog, discounts):
    return CartService(db=db, catalog=catalog, discounts=discounts)


@pytest.fixture
def order_service(db, catalog, discounts, lock_service):
    return OrderService(db=db, catalog=catalog, discounts=discounts, lock_service=lock_service)


@pytest.fixture
def client(lock_service):
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers():
    return {"X-User-Id": "1"}


@pytest.fixture
def admin_headers():
    return {"X-User-Id": "99", "X-User-Role": "admin"}


@pytest.fixture
def address():
    return {
        "street": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zipCode": "62701",
        "country": "US",
    }
