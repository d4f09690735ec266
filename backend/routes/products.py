"""
Catalog endpoints: item lookup and administrative edits.

Stock changes made here are the only ones that bypass the reservation
primitive, so they are restricted to admins.
"""

import logging
from fastapi import APIRouter, Depends, status

from deps import Principal, get_catalog, require_admin, require_principal
from domain.errors import NotFoundError, ValidationError
from domain.responses import success_response
from models import ProductCreateRequest, ProductUpdateRequest
from services.catalog_store import CatalogStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/products", tags=["products"])


@router.get("/{sku}")
async def get_product(
    sku: str,
    _principal: Principal = Depends(require_principal),
    catalog: CatalogStore = Depends(get_catalog),
):
    item = await catalog.get(sku)
    if not item:
        raise NotFoundError("Product", sku)
    return success_response(data=item.to_dict())


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    request: ProductCreateRequest,
    admin: Principal = Depends(require_admin),
    catalog: CatalogStore = Depends(get_catalog),
):
    item = await catalog.add_item(request.to_item())
    logger.info(f"Product {item.sku} created by {admin.username} (stock={item.stock}, price={item.price})")
    return success_response(data=item.to_dict())


@router.patch("/{sku}")
async def update_product(
    sku: str,
    request: ProductUpdateRequest,
    admin: Principal = Depends(require_admin),
    catalog: CatalogStore = Depends(get_catalog),
):
    changes = request.changes()
    if not changes:
        raise ValidationError("No valid fields to update")

    item = await catalog.update_item(sku, changes)
    if not item:
        raise NotFoundError("Product", sku)
    logger.info(f"Product {sku} updated by {admin.username}: {', '.join(sorted(changes))}")
    return success_response(data=item.to_dict())
