"""
Pydantic models for request validation.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from domain.records import CartLine, CatalogItem


class ApiBase(BaseModel):
    """Shared base: allows construction by Python name or alias."""
    model_config = ConfigDict(populate_by_name=True)


# ── Orders ──────────────────────────────────────────────────────────

class CartItem(ApiBase):
    sku: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(..., gt=0)


class OrderCreateRequest(ApiBase):
    """POST /orders body."""
    items: List[CartItem] = Field(..., description="Cart lines, reserved in this order")
    buyer_contact: Optional[str] = Field(
        default=None,
        max_length=320,
        validation_alias=AliasChoices("buyerContact", "userEmail", "buyer_contact"),
    )

    def cart(self) -> list[CartLine]:
        return [CartLine(sku=i.sku, quantity=i.quantity) for i in self.items]


# ── Catalog administration ──────────────────────────────────────────

class ProductCreateRequest(ApiBase):
    sku: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field("General", max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    stock: int = Field(..., ge=0)

    def to_item(self) -> CatalogItem:
        return CatalogItem(
            sku=self.sku,
            name=self.name,
            category=self.category,
            description=self.description,
            price=self.price,
            stock=self.stock,
        )


class ProductUpdateRequest(ApiBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    stock: Optional[int] = Field(default=None, ge=0)

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)
