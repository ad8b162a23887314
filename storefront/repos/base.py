# storefront/repos/base.py
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.domain.errors import PersistenceError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class BaseRepo:
    """Session holder with commit/rollback that maps driver errors to PersistenceError."""

    def __init__(self, db: Session):
        self.db = db

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Commit failed: {e}")
            raise PersistenceError(f"Commit failed: {e}") from e

    def rollback(self) -> None:
        self.db.rollback()

    def flush(self) -> None:
        self.db.flush()
