"""
Shared FastAPI dependencies.

Routers import store handles, auth guards and pagination from here. The
storage backend is picked once from settings: SQL stores wrap the
per-request session from the process-wide engine; memory stores are
process singletons built on first use.
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from domain.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from domain.enums import StorageBackend
from middleware.auth import Principal, require_admin, require_principal  # noqa: F401
from services.catalog_store import CatalogStore, MemoryCatalogStore, SqlCatalogStore
from services.order_ledger import MemoryOrderLedger, OrderLedger, SqlOrderLedger


class PageParams(TypedDict):
    page: int
    page_size: int


def page_params(
    page: int = Query(1, ge=1, le=100_000),
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize", ge=1, le=MAX_PAGE_SIZE),
) -> PageParams:
    return {"page": page, "page_size": page_size}


# ── Memory backend singletons ───────────────────────────────────────

_memory_catalog: MemoryCatalogStore | None = None
_memory_ledger: MemoryOrderLedger | None = None


def memory_stores() -> tuple[MemoryCatalogStore, MemoryOrderLedger]:
    global _memory_catalog, _memory_ledger
    if _memory_catalog is None:
        _memory_catalog = MemoryCatalogStore()
        _memory_ledger = MemoryOrderLedger()
    return _memory_catalog, _memory_ledger


def reset_memory_stores() -> None:
    """Drop the memory singletons (useful for testing)."""
    global _memory_catalog, _memory_ledger
    _memory_catalog = None
    _memory_ledger = None


def using_memory_backend() -> bool:
    return settings.storage_backend == StorageBackend.MEMORY.value


# ── Store dependencies ──────────────────────────────────────────────
# Both stores share the request session (FastAPI caches get_db per request).
# Sessions connect lazily, so the memory backend never touches the engine.


async def get_catalog(db: AsyncSession = Depends(get_db)) -> CatalogStore:
    if using_memory_backend():
        return memory_stores()[0]
    return SqlCatalogStore(db)


async def get_ledger(db: AsyncSession = Depends(get_db)) -> OrderLedger:
    if using_memory_backend():
        return memory_stores()[1]
    return SqlOrderLedger(db)
