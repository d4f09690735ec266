"""
Order endpoints: checkout plus owner-scoped order reads.
"""

import logging
from fastapi import APIRouter, Depends, Query

from deps import Principal, get_catalog, get_ledger, page_params, require_principal
from domain.ownership import canonical_owner
from domain.responses import StandardErrorResponse, StandardSuccessResponse, success_response
from models import OrderCreateRequest
from services import checkout_service, listing_service
from services.catalog_store import CatalogStore
from services.order_ledger import OrderLedger

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["orders"])

_ERROR = {"model": StandardErrorResponse}
CHECKOUT_RESPONSES = {
    200: {"model": StandardSuccessResponse[dict], "description": "Order PAID"},
    400: {**_ERROR, "description": "Empty or malformed cart"},
    401: {**_ERROR, "description": "Missing or invalid token"},
    404: {**_ERROR, "description": "Unknown sku"},
    409: {**_ERROR, "description": "Insufficient stock or reservation conflict"},
    500: {**_ERROR, "description": "Storage failure"},
}
READ_RESPONSES = {
    200: {"model": StandardSuccessResponse[dict]},
    400: {**_ERROR, "description": "Invalid query"},
    401: {**_ERROR, "description": "Missing or invalid token"},
    404: {**_ERROR, "description": "Order not found"},
}


@router.post("", responses=CHECKOUT_RESPONSES)
async def create_order(
    request: OrderCreateRequest,
    principal: Principal = Depends(require_principal),
    catalog: CatalogStore = Depends(get_catalog),
    ledger: OrderLedger = Depends(get_ledger),
):
    """
    Checkout. Errors map to 400 (bad cart), 404 (unknown sku),
    409 (insufficient stock / reservation conflict), 500 (storage failure).
    """
    receipt = await checkout_service.create_order(
        catalog,
        ledger,
        cart=request.cart(),
        owner=canonical_owner(principal.candidate_id, principal.username),
        buyer_contact=request.buyer_contact,
    )
    return success_response(data=receipt.to_dict())


@router.get("", responses=READ_RESPONSES)
async def list_orders(
    status: str | None = Query(None, description="PENDING | PAID | FAILED (case-insensitive)"),
    paging: dict = Depends(page_params),
    principal: Principal = Depends(require_principal),
    ledger: OrderLedger = Depends(get_ledger),
):
    result = await listing_service.list_orders(
        ledger,
        principal,
        page=paging["page"],
        page_size=paging["page_size"],
        status=status,
    )
    return success_response(data=result.to_dict())


@router.get("/{order_id}", responses=READ_RESPONSES)
async def get_order(
    order_id: int,
    principal: Principal = Depends(require_principal),
    ledger: OrderLedger = Depends(get_ledger),
):
    order = await listing_service.get_order(ledger, principal, order_id)
    return success_response(data=order.to_dict())
