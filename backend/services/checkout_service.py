"""
Checkout service: turns a cart into a priced, persisted order.

Sequence for one request:
  1. validate the cart shape
  2. one batched catalog read
  3. per-line dry run against that snapshot (fail fast, cart order)
  4. price lines from the snapshot (prices are frozen into the order)
  5. persist the order as PENDING
  6. reserve stock with per-line conditional decrements
  7. FAILED if any line lost its stock to a concurrent checkout, else PAID

Steps 3 and 6 are not atomic together: a checkout can pass validation and
still lose the race at reservation time. That outcome is a FAILED order and
a ReservationConflictError, never oversold stock.
"""
import logging
import time
from decimal import Decimal

from config import settings
from domain.constants import MONEY_QUANT
from domain.enums import OrderStatus
from domain.errors import (
    InsufficientStockError,
    InvalidRequestError,
    ItemNotFoundError,
    PersistenceFailureError,
    ReservationConflictError,
)
from domain.ownership import OwnerRef
from domain.records import CartLine, CatalogItem, OrderLine, OrderRecord, Receipt
from exceptions import StoreError
from services.async_executor import run_blocking
from services.catalog_store import CatalogStore
from services.order_ledger import OrderLedger

logger = logging.getLogger(__name__)


def _busy_work(ms: int) -> None:
    """Spin for `ms` milliseconds to give every order the same CPU cost."""
    spin_until = time.perf_counter() + ms / 1000.0
    while time.perf_counter() < spin_until:
        pass


def validate_cart(cart: list[CartLine], max_lines: int) -> None:
    if not cart:
        raise InvalidRequestError("Items required")
    if len(cart) > max_lines:
        raise InvalidRequestError(f"Order cannot contain more than {max_lines} items")
    for line in cart:
        if not line.sku or not line.sku.strip():
            raise InvalidRequestError("Every item needs a sku")
        if line.quantity <= 0:
            raise InvalidRequestError(f"Item {line.sku}: quantity must be positive", sku=line.sku)


def price_cart(cart: list[CartLine], catalog: dict[str, CatalogItem]) -> tuple[list[OrderLine], Decimal]:
    """
    Check every line against the catalog snapshot and freeze its unit price.

    Raises on the first unknown sku or short line, in cart order.
    """
    lines: list[OrderLine] = []
    for cl in cart:
        item = catalog.get(cl.sku)
        if item is None:
            raise ItemNotFoundError(cl.sku)
        if item.stock < cl.quantity:
            raise InsufficientStockError(cl.sku, requested=cl.quantity, available=item.stock)
        lines.append(OrderLine(sku=cl.sku, quantity=cl.quantity, unit_price=Decimal(item.price)))

    total = sum((line.amount for line in lines), Decimal("0")).quantize(MONEY_QUANT)
    return lines, total


async def _release_partial(catalog: CatalogStore, lines: list[OrderLine], applied: list[bool], order_id: int) -> None:
    for line, ok in zip(lines, applied):
        if not ok:
            continue
        try:
            await catalog.release(line)
        except StoreError:
            # Stock stays short by this line; the FAILED order is the audit trail.
            logger.error(
                f"Order {order_id}: could not release {line.quantity} x {line.sku} after conflict",
                exc_info=True,
            )


async def create_order(
    catalog: CatalogStore,
    ledger: OrderLedger,
    *,
    cart: list[CartLine],
    owner: OwnerRef,
    buyer_contact: str | None = None,
) -> Receipt:
    """
    Run one checkout.

    Returns a PAID receipt, or raises one of InvalidRequestError,
    ItemNotFoundError, InsufficientStockError (nothing persisted),
    ReservationConflictError (order persisted as FAILED) or
    PersistenceFailureError (storage failure).
    """
    start = time.perf_counter()
    validate_cart(cart, settings.checkout_max_lines)

    try:
        snapshot = await catalog.get_many(cl.sku for cl in cart)
    except StoreError as e:
        logger.error(f"Catalog lookup failed: {e}", exc_info=True)
        raise PersistenceFailureError() from e

    try:
        lines, total = price_cart(cart, snapshot)
    except (ItemNotFoundError, InsufficientStockError) as e:
        logger.info(f"Checkout rejected for {owner.value}: {e.message}")
        raise

    try:
        order = await ledger.insert(
            OrderRecord(lines=lines, total=total, owner=owner, buyer_contact=buyer_contact)
        )
    except StoreError as e:
        logger.error(f"Could not persist pending order for {owner.value}: {e}", exc_info=True)
        raise PersistenceFailureError() from e

    if settings.checkout_work_ms > 0:
        await run_blocking(_busy_work, settings.checkout_work_ms)

    try:
        applied = await catalog.reserve_many(lines)
    except StoreError as e:
        logger.error(f"Order {order.id}: reservation failed, left PENDING for reconciliation: {e}", exc_info=True)
        raise PersistenceFailureError(order_id=order.id) from e

    if sum(applied) != len(lines):
        failed_skus = [line.sku for line, ok in zip(lines, applied) if not ok]
        logger.warning(f"Order {order.id}: stock conflict on {', '.join(failed_skus)}")
        if settings.checkout_compensate_on_conflict:
            await _release_partial(catalog, lines, applied, order.id)
        try:
            await ledger.transition(order.id, OrderStatus.FAILED)
        except StoreError as e:
            logger.error(f"Order {order.id}: could not mark FAILED, left PENDING: {e}", exc_info=True)
            raise PersistenceFailureError(order_id=order.id) from e
        raise ReservationConflictError(order.id, failed_skus)

    try:
        await ledger.transition(order.id, OrderStatus.PAID)
    except StoreError as e:
        logger.error(f"Order {order.id}: stock reserved but could not mark PAID: {e}", exc_info=True)
        raise PersistenceFailureError(order_id=order.id) from e

    elapsed_ms = round((time.perf_counter() - start) * 1000)
    logger.info(f"Order {order.id} PAID: {len(lines)} line(s), total {total}, {elapsed_ms}ms")
    return Receipt(
        order_id=order.id,
        total=total,
        status=OrderStatus.PAID,
        lines=lines,
        processing_time_ms=elapsed_ms,
    )
