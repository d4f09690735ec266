"""
Catalog seeding for load-test runs.

Reads CATALOG_SEED_FILE (a JSON list of {sku, name, price, stock, ...}) at
startup and inserts every sku that is not in the catalog yet. Existing items
are left alone so a restart never resets stock mid-test.
"""
import json
import logging

from pydantic import ValidationError

from domain.errors import ConflictError
from domain.records import CatalogItem
from models import ProductCreateRequest
from services.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


def load_seed_file(path: str) -> list[CatalogItem]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"Catalog seed file {path} must contain a JSON list")

    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValueError(f"Catalog seed file {path}: every entry must be an object")
        sku = entry.get("sku")
        try:
            request = ProductCreateRequest.model_validate(
                {**entry, "name": entry.get("name") or sku, "category": entry.get("category") or "General"}
            )
        except ValidationError as e:
            raise ValueError(f"Catalog seed file {path}: invalid entry for sku {sku!r}: {e}") from e
        items.append(request.to_item())
    return items


async def seed_catalog(catalog: CatalogStore, items: list[CatalogItem]) -> int:
    """Insert the missing items; returns how many were added."""
    existing = await catalog.get_many(i.sku for i in items)
    added = 0
    for item in items:
        if item.sku in existing:
            continue
        try:
            await catalog.add_item(item)
            added += 1
        except ConflictError:
            # Another worker seeded it first
            pass
    logger.info(f"Catalog seed: {added} added, {len(items) - added} already present")
    return added
