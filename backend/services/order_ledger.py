"""
Order ledger: durable store of checkout attempts.

Only two status changes exist: PENDING -> PAID and PENDING -> FAILED. Both
backends apply them as a compare-and-set on the current status, so a
terminal order can never be rewritten.
"""
import dataclasses
import functools
import itertools
import logging
from abc import ABC, abstractmethod
from datetime import datetime

from sqlalchemy import and_, false, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Order, OrderItem
from domain.enums import OrderStatus
from domain.ownership import OwnerRef
from domain.records import OrderLine, OrderPage, OrderRecord
from exceptions import IllegalTransitionError, StoreError

logger = logging.getLogger(__name__)


class OrderLedger(ABC):
    """Abstract interface for order backends."""

    @abstractmethod
    async def insert(self, order: OrderRecord) -> OrderRecord:
        """Durably store a new PENDING order; returns it with id and timestamps set."""
        ...

    @abstractmethod
    async def transition(self, order_id: int, status: OrderStatus) -> OrderRecord:
        """Move a PENDING order to a terminal status. Raises IllegalTransitionError otherwise."""
        ...

    @abstractmethod
    async def get(self, order_id: int) -> OrderRecord | None:
        ...

    @abstractmethod
    async def list(
        self,
        *,
        owners: list[OwnerRef] | None,
        status: OrderStatus | None,
        page: int,
        page_size: int,
    ) -> OrderPage:
        """
        Newest-first page of orders.

        owners=None means unscoped (privileged caller); otherwise an order
        matches when its owner equals any of the given variants.
        """
        ...


def _check_transition(order_id: int, current: OrderStatus, target: OrderStatus) -> None:
    if current.is_terminal or not target.is_terminal:
        raise IllegalTransitionError(
            f"Order {order_id}: illegal transition {current.value} -> {target.value}"
        )


# ── SQL backend ─────────────────────────────────────────────────────


def _translate_errors(op):
    """Roll back and surface SQLAlchemy failures as StoreError."""
    @functools.wraps(op)
    async def wrapper(self, *args, **kwargs):
        try:
            return await op(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Order ledger {op.__name__} failed: {e}")
            await self.db.rollback()
            raise StoreError(f"ledger {op.__name__} failed") from e
    return wrapper


def _to_record(o: Order) -> OrderRecord:
    return OrderRecord(
        id=o.id,
        lines=[
            OrderLine(sku=i.sku, quantity=i.quantity, unit_price=i.unit_price)
            for i in o.lines
        ],
        total=o.total,
        owner=OwnerRef.from_storage(o.owner_kind, o.owner_ref),
        buyer_contact=o.buyer_contact,
        status=OrderStatus(o.status),
        created_at=o.created_at,
        updated_at=o.updated_at,
    )


class SqlOrderLedger(OrderLedger):
    """Ledger backed by the `orders` and `order_items` tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, order_id: int) -> Order | None:
        res = await self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return res.scalar_one_or_none()

    @_translate_errors
    async def insert(self, order: OrderRecord) -> OrderRecord:
        now = datetime.utcnow()
        row = Order(
            owner_kind=order.owner.kind.value,
            owner_ref=order.owner.value,
            buyer_contact=order.buyer_contact,
            status=order.status.value,
            total=order.total,
            created_at=now,
            updated_at=now,
            lines=[
                OrderItem(
                    position=pos,
                    sku=line.sku,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for pos, line in enumerate(order.lines)
            ],
        )
        self.db.add(row)
        await self.db.commit()
        return dataclasses.replace(order, id=row.id, created_at=now, updated_at=now)

    @_translate_errors
    async def transition(self, order_id: int, status: OrderStatus) -> OrderRecord:
        if not status.is_terminal:
            _check_transition(order_id, OrderStatus.PENDING, status)

        res = await self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == OrderStatus.PENDING.value)
            .values(status=status.value, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            await self.db.rollback()
            current = await self._load(order_id)
            if current is None:
                raise IllegalTransitionError(f"Order {order_id} does not exist")
            raise IllegalTransitionError(
                f"Order {order_id}: illegal transition {current.status} -> {status.value}"
            )
        await self.db.commit()

        row = await self._load(order_id)
        return _to_record(row)

    @_translate_errors
    async def get(self, order_id: int) -> OrderRecord | None:
        row = await self._load(order_id)
        return _to_record(row) if row else None

    @_translate_errors
    async def list(
        self,
        *,
        owners: list[OwnerRef] | None,
        status: OrderStatus | None,
        page: int,
        page_size: int,
    ) -> OrderPage:
        conditions = []
        if owners is not None:
            conditions.append(
                or_(
                    *[
                        and_(Order.owner_kind == o.kind.value, Order.owner_ref == o.value)
                        for o in owners
                    ]
                )
                if owners
                else false()
            )
        if status is not None:
            conditions.append(Order.status == status.value)

        total_res = await self.db.execute(
            select(func.count(Order.id)).where(*conditions)
        )
        total = total_res.scalar() or 0

        res = await self.db.execute(
            select(Order)
            .where(*conditions)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .execution_options(populate_existing=True)
        )
        items = [_to_record(o) for o in res.scalars().all()]
        return OrderPage(items=items, total=total, page=page, page_size=page_size)


# ── In-memory backend ───────────────────────────────────────────────


class MemoryOrderLedger(OrderLedger):
    """Process-local ledger. Mutations contain no awaits, so each is atomic on the event loop."""

    def __init__(self):
        self._orders: dict[int, OrderRecord] = {}
        self._ids = itertools.count(1)

    @staticmethod
    def _copy(order: OrderRecord) -> OrderRecord:
        return dataclasses.replace(order, lines=list(order.lines))

    async def insert(self, order: OrderRecord) -> OrderRecord:
        now = datetime.utcnow()
        stored = dataclasses.replace(
            order, id=next(self._ids), lines=list(order.lines), created_at=now, updated_at=now
        )
        self._orders[stored.id] = stored
        return self._copy(stored)

    async def transition(self, order_id: int, status: OrderStatus) -> OrderRecord:
        stored = self._orders.get(order_id)
        if stored is None:
            raise IllegalTransitionError(f"Order {order_id} does not exist")
        _check_transition(order_id, stored.status, status)
        stored.status = status
        stored.updated_at = datetime.utcnow()
        return self._copy(stored)

    async def get(self, order_id: int) -> OrderRecord | None:
        stored = self._orders.get(order_id)
        return self._copy(stored) if stored else None

    async def list(
        self,
        *,
        owners: list[OwnerRef] | None,
        status: OrderStatus | None,
        page: int,
        page_size: int,
    ) -> OrderPage:
        matches = [
            o for o in self._orders.values()
            if (owners is None or o.owner in owners)
            and (status is None or o.status is status)
        ]
        matches.sort(key=lambda o: (o.created_at, o.id), reverse=True)
        start = (page - 1) * page_size
        items = [self._copy(o) for o in matches[start:start + page_size]]
        return OrderPage(items=items, total=len(matches), page=page, page_size=page_size)
