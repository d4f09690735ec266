"""
Catalog store: item lookup and the stock reservation primitive.

The checkout engine programs against CatalogStore; the backend is chosen by
STORAGE_BACKEND (see deps.py):

  - SqlCatalogStore: one conditional UPDATE per line. The database row lock
    makes each "decrement if stock >= q" atomic per sku.
  - MemoryCatalogStore: per-sku asyncio.Lock, no lock shared across skus.

Neither backend ever lets stock go negative, and neither reads stock back
into Python to compute the new value.
"""
import asyncio
import dataclasses
import functools
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Product
from domain.errors import ConflictError
from domain.records import CatalogItem, OrderLine
from exceptions import StoreError

logger = logging.getLogger(__name__)

# Fields an administrator may change on an existing item
EDITABLE_FIELDS = ("name", "category", "description", "price", "stock")


class CatalogStore(ABC):
    """Abstract interface for catalog backends."""

    @abstractmethod
    async def get_many(self, skus: Iterable[str]) -> dict[str, CatalogItem]:
        """Batched lookup. Unknown skus are simply absent from the result."""
        ...

    async def get(self, sku: str) -> CatalogItem | None:
        found = await self.get_many([sku])
        return found.get(sku)

    @abstractmethod
    async def reserve_many(self, lines: list[OrderLine]) -> list[bool]:
        """
        Conditionally decrement stock for every line, in order.

        Every line is attempted even after a failure. Returns one flag per
        line: True when that line's decrement was applied.
        """
        ...

    @abstractmethod
    async def release(self, line: OrderLine) -> None:
        """Give back a reservation made by reserve_many (atomic increment)."""
        ...

    @abstractmethod
    async def add_item(self, item: CatalogItem) -> CatalogItem:
        """Create a catalog item. Raises ConflictError on duplicate sku."""
        ...

    @abstractmethod
    async def update_item(self, sku: str, changes: dict) -> CatalogItem | None:
        """Administrative edit. Returns None when the sku is unknown."""
        ...


# ── SQL backend ─────────────────────────────────────────────────────


def _translate_errors(op):
    """Roll back and surface SQLAlchemy failures as StoreError."""
    @functools.wraps(op)
    async def wrapper(self, *args, **kwargs):
        try:
            return await op(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Catalog store {op.__name__} failed: {e}")
            await self.db.rollback()
            raise StoreError(f"catalog {op.__name__} failed") from e
    return wrapper


def _to_item(p: Product) -> CatalogItem:
    return CatalogItem(
        sku=p.sku,
        name=p.name,
        category=p.category,
        description=p.description,
        price=p.price,
        stock=p.stock,
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


class SqlCatalogStore(CatalogStore):
    """Catalog backed by the `products` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @_translate_errors
    async def get_many(self, skus: Iterable[str]) -> dict[str, CatalogItem]:
        skus = list(dict.fromkeys(skus))
        if not skus:
            return {}
        res = await self.db.execute(
            select(Product)
            .where(Product.sku.in_(skus))
            .execution_options(populate_existing=True)
        )
        return {p.sku: _to_item(p) for p in res.scalars().all()}

    @_translate_errors
    async def reserve_many(self, lines: list[OrderLine]) -> list[bool]:
        now = datetime.utcnow()
        applied = []
        for line in lines:
            res = await self.db.execute(
                update(Product)
                .where(Product.sku == line.sku, Product.stock >= line.quantity)
                .values(stock=Product.stock - line.quantity, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            applied.append(res.rowcount == 1)
        await self.db.commit()
        return applied

    @_translate_errors
    async def release(self, line: OrderLine) -> None:
        await self.db.execute(
            update(Product)
            .where(Product.sku == line.sku)
            .values(stock=Product.stock + line.quantity, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

    @_translate_errors
    async def add_item(self, item: CatalogItem) -> CatalogItem:
        existing = await self.db.execute(select(Product.id).where(Product.sku == item.sku))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("SKU already exists", details={"sku": item.sku})

        now = datetime.utcnow()
        product = Product(
            sku=item.sku,
            name=item.name,
            category=item.category or "General",
            description=item.description,
            price=item.price,
            stock=item.stock,
            created_at=now,
            updated_at=now,
        )
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)
        return _to_item(product)

    @_translate_errors
    async def update_item(self, sku: str, changes: dict) -> CatalogItem | None:
        res = await self.db.execute(
            select(Product)
            .where(Product.sku == sku)
            .execution_options(populate_existing=True)
        )
        product = res.scalar_one_or_none()
        if not product:
            return None

        for key in EDITABLE_FIELDS:
            if key in changes:
                setattr(product, key, changes[key])
        product.updated_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(product)
        return _to_item(product)


# ── In-memory backend ───────────────────────────────────────────────


class MemoryCatalogStore(CatalogStore):
    """Process-local catalog. One lock per sku serializes that sku's stock changes."""

    def __init__(self, items: Iterable[CatalogItem] = ()):
        self._items: dict[str, CatalogItem] = {}
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        for item in items:
            self._items[item.sku] = dataclasses.replace(item)

    async def get_many(self, skus: Iterable[str]) -> dict[str, CatalogItem]:
        # Copies: callers hold a snapshot that can go stale, like a DB read.
        return {
            sku: dataclasses.replace(self._items[sku])
            for sku in skus
            if sku in self._items
        }

    async def _decrement_if_at_least(self, sku: str, quantity: int) -> bool:
        if sku not in self._items:
            return False
        async with self._locks[sku]:
            item = self._items.get(sku)
            if item is None or item.stock < quantity:
                return False
            item.stock -= quantity
            item.updated_at = datetime.utcnow()
            return True

    async def reserve_many(self, lines: list[OrderLine]) -> list[bool]:
        return [await self._decrement_if_at_least(line.sku, line.quantity) for line in lines]

    async def release(self, line: OrderLine) -> None:
        if line.sku not in self._items:
            return
        async with self._locks[line.sku]:
            item = self._items.get(line.sku)
            if item is not None:
                item.stock += line.quantity
                item.updated_at = datetime.utcnow()

    async def add_item(self, item: CatalogItem) -> CatalogItem:
        async with self._locks[item.sku]:
            if item.sku in self._items:
                raise ConflictError("SKU already exists", details={"sku": item.sku})
            now = datetime.utcnow()
            stored = dataclasses.replace(item, created_at=now, updated_at=now)
            self._items[item.sku] = stored
            return dataclasses.replace(stored)

    async def update_item(self, sku: str, changes: dict) -> CatalogItem | None:
        if sku not in self._items:
            return None
        async with self._locks[sku]:
            item = self._items.get(sku)
            if item is None:
                return None
            for key in EDITABLE_FIELDS:
                if key in changes:
                    setattr(item, key, changes[key])
            item.updated_at = datetime.utcnow()
            return dataclasses.replace(item)
