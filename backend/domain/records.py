"""
Plain records passed between the checkout engine and the stores.

Stores translate their storage rows into these, so the engine never sees
ORM objects or backend-specific types.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from domain.enums import OrderStatus
from domain.ownership import OwnerRef


@dataclass
class CatalogItem:
    sku: str
    name: str
    price: Decimal
    stock: int
    category: str = "General"
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "price": self.price,
            "stock": self.stock,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class CartLine:
    sku: str
    quantity: int


@dataclass(frozen=True)
class OrderLine:
    sku: str
    quantity: int
    unit_price: Decimal

    @property
    def amount(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {"sku": self.sku, "quantity": self.quantity, "price": self.unit_price}


@dataclass
class OrderRecord:
    lines: list[OrderLine]
    total: Decimal
    owner: OwnerRef
    buyer_contact: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "items": [line.to_dict() for line in self.lines],
            "total": self.total,
            "status": self.status.value,
            "owner": self.owner.to_dict(),
            "buyerContact": self.buyer_contact,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class Receipt:
    order_id: int
    total: Decimal
    status: OrderStatus
    lines: list[OrderLine] = field(default_factory=list)
    processing_time_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.order_id,
            "total": self.total,
            "status": self.status.value,
            "items": [line.to_dict() for line in self.lines],
            "processingTimeMs": self.processing_time_ms,
        }


@dataclass
class OrderPage:
    items: list[OrderRecord]
    total: int
    page: int
    page_size: int

    def to_dict(self) -> dict:
        return {
            "items": [o.to_dict() for o in self.items],
            "total": self.total,
            "page": self.page,
            "pageSize": self.page_size,
        }
