"""
Listing service: owner-scoped read access to orders.

Non-admin callers only see orders whose owner matches one of their identity
variants (structured id or legacy username); admins see everything.
"""
from domain.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from domain.enums import OrderStatus
from domain.errors import InvalidRequestError, NotFoundError
from domain.ownership import owner_variants
from domain.records import OrderPage, OrderRecord
from middleware.auth import Principal
from services.order_ledger import OrderLedger


def parse_status(raw: str | None) -> OrderStatus | None:
    if raw is None or not raw.strip():
        return None
    try:
        return OrderStatus(raw.strip().upper())
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise InvalidRequestError(f"Unknown status '{raw}' (expected one of {allowed})")


def _scope(principal: Principal):
    if principal.is_admin:
        return None
    return owner_variants(principal.candidate_id, principal.username)


async def list_orders(
    ledger: OrderLedger,
    principal: Principal,
    *,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    status: str | None = None,
) -> OrderPage:
    page = max(1, page)
    page_size = min(MAX_PAGE_SIZE, max(1, page_size))
    return await ledger.list(
        owners=_scope(principal),
        status=parse_status(status),
        page=page,
        page_size=page_size,
    )


async def get_order(ledger: OrderLedger, principal: Principal, order_id: int) -> OrderRecord:
    """Fetch one order; orders owned by someone else look missing to non-admins."""
    order = await ledger.get(order_id)
    scope = _scope(principal)
    if order is None or (scope is not None and order.owner not in scope):
        raise NotFoundError("Order", str(order_id))
    return order
