"""Typed models shared by the serdyn benchmarks."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from serdyn import newtype, tagged_union, tuple_struct, u8, u32, u64


class Status(enum.Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"


@newtype
@dataclass(frozen=True)
class Sku:
    code: str


@tuple_struct
@dataclass(frozen=True)
class Money:
    units: u64
    cents: u8


@dataclass
class LineItem:
    sku: Sku
    quantity: u32
    price: Money
    note: Optional[str] = None


@tagged_union
class Payment:
    pass


@dataclass
class Cash(Payment):
    pass


@newtype
@dataclass
class Voucher(Payment):
    code: str


@dataclass
class Card(Payment):
    last4: str
    expiry: tuple[u8, u8]


@dataclass
class Order:
    id: u64
    customer: str
    status: Status
    items: list[LineItem] = field(default_factory=list)
    payments: list[Payment] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)


def sample_order(item_count: int = 20) -> Order:
    """Return an order with ``item_count`` line items and three payments."""
    return Order(
        id=1_000_001,
        customer="bench@example.com",
        status=Status.SHIPPED,
        items=[
            LineItem(Sku(f"SKU-{i:05d}"), quantity=i + 1, price=Money(i * 3, i % 100))
            for i in range(item_count)
        ],
        payments=[Cash(), Voucher("WELCOME"), Card("4242", (12, 30))],
        metadata={"channel": "web", "region": "eu"},
    )
