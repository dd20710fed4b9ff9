# brewpos/models.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlmodel import SQLModel, Field


class OrderStatus(str, Enum):
    pending = "pending"
    preparing = "preparing"
    ready = "ready"
    delivered = "delivered"
    cancelled = "cancelled"


class MenuItem(SQLModel, table=True):
    __tablename__ = "menu_item"
    id: Optional[int] = Field(default=None, primary_key=True)
    category: str = Field(max_length=50)
    name: str = Field(max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(max_digits=6, decimal_places=2)
    emoji: str = Field(default="☕", max_length=10)


class Order(SQLModel, table=True):
    __tablename__ = "customer_order"
    id: Optional[int] = Field(default=None, primary_key=True)
    customer: str = Field(max_length=100)
    note: Optional[str] = None
    status: str = Field(default=OrderStatus.pending.value, max_length=20, index=True)
    total: Decimal = Field(max_digits=8, decimal_places=2)
    # ora locale del server, DateTime "naive": le statistiche "di oggi" usano la data locale
    created_at: datetime = Field(
        default_factory=datetime.now,
        sa_column=Column(DateTime, nullable=False, index=True),
    )


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_item"
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("customer_order.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    # ⚠️ nessuna FK verso menu_item: la voce di menu può sparire, la riga resta leggibile
    menu_id: Optional[int] = None
    name: str = Field(max_length=100)
    price: Decimal = Field(max_digits=6, decimal_places=2)
    quantity: int


class SchemaMarker(SQLModel, table=True):
    """Riga unica (id=1) scritta nella stessa transazione del seed.
    La PK impedisce a due processi di seminare entrambi."""
    __tablename__ = "schema_marker"
    id: int = Field(default=1, primary_key=True)
    version: int = 1
    seed_source: str
    provisioned_at: datetime = Field(
        default_factory=datetime.now,
        sa_column=Column(DateTime, nullable=False),
    )


LEDGER_TABLES = [
    MenuItem.__table__,
    Order.__table__,
    OrderItem.__table__,
    SchemaMarker.__table__,
]
