"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes by the exception handlers
in main.py. Every subclass carries a stable `code` that callers can branch on.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    code = "domain_error"

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found (404)."""
    code = "not_found"

    def __init__(self, resource_type: str, identifier: str, details: dict | None = None):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ValidationError(DomainError):
    """Validation error (400)."""
    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class PermissionDeniedError(DomainError):
    """Permission denied (403)."""
    code = "permission_denied"

    def __init__(self, message: str = "Permission denied", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class UnauthorizedError(DomainError):
    """Unauthorized access (401)."""
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)
        self.headers = {"WWW-Authenticate": "Bearer"}


class ConflictError(DomainError):
    """Resource conflict (409)."""
    code = "conflict"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


# ── Checkout taxonomy ───────────────────────────────────────────────


class InvalidRequestError(ValidationError):
    """Empty or malformed cart (400). Never persisted."""
    code = "invalid_request"

    def __init__(self, message: str, sku: str | None = None):
        super().__init__(message, details={"sku": sku} if sku else None)


class ItemNotFoundError(NotFoundError):
    """Cart references an unknown catalog key (404). Never persisted."""
    code = "item_not_found"

    def __init__(self, sku: str):
        super().__init__("Product", sku, details={"sku": sku})
        self.sku = sku


class InsufficientStockError(ConflictError):
    """Requested quantity exceeds the stock seen at validation time (409). Never persisted."""
    code = "insufficient_stock"

    def __init__(self, sku: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {sku}",
            details={"sku": sku, "requested": requested, "available": available},
        )
        self.sku = sku


class ReservationConflictError(ConflictError):
    """Stock was taken by a concurrent checkout after validation (409). Order is FAILED."""
    code = "reservation_conflict"

    def __init__(self, order_id, failed_skus: list[str]):
        super().__init__(
            "Stock conflict detected",
            details={
                "orderId": order_id,
                "sku": failed_skus[0] if failed_skus else None,
                "failedSkus": failed_skus,
            },
        )
        self.order_id = order_id
        self.failed_skus = failed_skus


class PersistenceFailureError(DomainError):
    """Storage unavailable (500). Order state may be indeterminate."""
    code = "persistence_failure"

    def __init__(self, message: str = "Failed to create order", order_id=None):
        super().__init__(
            message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"orderId": order_id} if order_id is not None else None,
        )
        self.order_id = order_id
