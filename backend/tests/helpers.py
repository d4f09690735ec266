"""
Shared test helpers (importable from test modules, unlike conftest fixtures).
"""
from decimal import Decimal

from domain.records import CatalogItem
from middleware.auth import issue_access_token

ALICE_ID = "64b7f0c2a1e4d3b2c1a0f9e8"
BOB_ID = "64b7f0c2a1e4d3b2c1a0f9e9"
ADMIN_ID = "64b7f0c2a1e4d3b2c1a0f000"


def make_item(sku: str, price: str = "10.00", stock: int = 5, **kwargs) -> CatalogItem:
    return CatalogItem(sku=sku, name=kwargs.pop("name", f"Item {sku}"), price=Decimal(price), stock=stock, **kwargs)


def auth_headers(username: str = "alice", candidate_id: str | None = ALICE_ID, is_admin: bool = False) -> dict:
    """Authorization header with a valid JWT for the given caller."""
    token = issue_access_token(username=username, candidate_id=candidate_id, is_admin=is_admin)
    return {"Authorization": f"Bearer {token}"}
