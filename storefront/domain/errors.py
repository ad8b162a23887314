# storefront/domain/errors.py
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """
    Base for every error the service reports to a client.
    `message` goes to the client, `internal_message` only to the logs.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        internal_message: Optional[str] = None,
    ):
        self.message = message
        self.internal_message = internal_message or message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message}


class ValidationError(AppError):
    """Malformed input."""

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[List[Dict[str, str]]] = None,
    ):
        self.field_errors = field_errors or []
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.field_errors:
            body["errors"] = self.field_errors
        return body


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, resource: str = "Resource", resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message += f" with id {resource_id}"
        super().__init__(message)


class BusinessRuleViolation(AppError):
    status_code = 400


class InsufficientStockError(BusinessRuleViolation):
    def __init__(self, product_id: int, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Not enough stock available for product {product_id}. "
            f"Available: {available}, requested: {requested}"
        )


class AuthorizationError(AppError):
    status_code = 401

    def __init__(self, message: str = "Not authorized to access this route"):
        super().__init__(message)


class ForbiddenError(AuthorizationError):
    status_code = 403


class ConflictError(AppError):
    status_code = 409


class PersistenceError(AppError):
    status_code = 500

    def __init__(self, internal_message: str):
        super().__init__(
            "An internal error occurred. Please try again later.",
            internal_message=internal_message,
        )
