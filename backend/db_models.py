"""
SQLAlchemy ORM models for the LoadShop backend.

Tables:
    products     catalog items with a mutable stock counter
    orders       checkout attempts (PENDING | PAID | FAILED)
    order_items  immutable order lines with the unit price snapshotted
                 at order time
"""
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Text, ForeignKey,
    CheckConstraint, Index,
)
from sqlalchemy.orm import relationship

from database import Base


class Product(Base):
    """Purchasable catalog item. `stock` is only changed by reservations or admin edits."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False, default="General")
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Ownership is a tagged union: owner_kind "id" (structured candidate id)
    # or "name" (legacy username rows).
    owner_kind = Column(String(10), nullable=False, default="id")
    owner_ref = Column(String(100), nullable=False, index=True)
    buyer_contact = Column(String(320), nullable=True)
    status = Column(String(20), nullable=False, default="PENDING", index=True)  # PENDING | PAID | FAILED
    total = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow)

    lines = relationship(
        "OrderItem",
        order_by="OrderItem.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        # Owner-scoped listing: filter by owner, order by created_at DESC
        Index("ix_orders_owner_created", "owner_kind", "owner_ref", "created_at"),
        Index("ix_orders_status_created", "status", "created_at"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    # By value, not a foreign key: history survives catalog deletes and reprices.
    sku = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
