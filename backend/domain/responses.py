"""
Standard API response models and helpers for consistent response formatting.

All endpoints should use these helpers to ensure consistent response envelopes:
- Success: { "success": true, "data": <payload>, "meta": {...} }
- Error: { "success": false, "error": "<message>", "code": "...", "details": {...} }
"""
from typing import Any, Generic, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class StandardErrorResponse(BaseModel):
    """Standard error response envelope."""
    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Stable error classification (e.g., 'insufficient_stock')")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context (e.g., the offending sku)")


class StandardSuccessResponse(BaseModel, Generic[T]):
    """Standard success response envelope."""
    success: bool = Field(True, description="Always true for success")
    data: T = Field(..., description="Response payload")
    meta: dict[str, Any] | None = Field(default=None, description="Optional metadata")


def success_response(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: The response payload
        meta: Optional metadata (timestamps, etc.)

    Returns:
        dict: { "success": true, "data": <data>, "meta": <meta> }
    """
    response = {"success": True, "data": data}
    if meta:
        response["meta"] = meta
    return response


def error_response(message: str, code: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create a standardized error response.

    Returns:
        dict: { "success": false, "error": <message>, "code": <code>, "details": <details> }
    """
    return {
        "success": False,
        "error": message,
        "code": code,
        "details": details or None,
    }
