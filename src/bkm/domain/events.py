"""Typed inputs accepted by the transaction engine.

Numeric fields may arrive as strings straight from a form; the engine parses
and validates them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

Number = Union[float, int, str, None]


@dataclass(frozen=True)
class PurchaseEvent:
    product_name: str
    product_type: str
    unit_cost: Number
    quantity: Number = None
    grams: Number = None
    milliliters: Number = None
    payment_method: str = "cash"
    creditor_name: Optional[str] = None
    description: Optional[str] = None
    note: Optional[str] = None
    kind: str = "purchase"


@dataclass(frozen=True)
class SaleEvent:
    product_name: str
    quantity: Number
    unit_price: Number = None
    payment_method: str = "cash"
    customer_name: Optional[str] = None
    product_type: Optional[str] = None
    is_boxed: bool = False
    box_price: Number = None
    box_name: Optional[str] = None
    order_number: Optional[str] = None
    note: Optional[str] = None
    kind: str = "sale"


@dataclass(frozen=True)
class CreateProductEvent:
    name: str
    quantity: Number
    bottles_used: Number = None
    oil_used: Number = None
    bottle_name: Optional[str] = None
    oil_name: Optional[str] = None
    selling_price: Number = None
    kind: str = "create"


@dataclass(frozen=True)
class CashEvent:
    """expense, loss or gain."""

    kind: str
    amount: Number
    description: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class PartnerEvent:
    """withdrawal, deposit or investing."""

    kind: str
    partner_name: str
    amount: Number
    note: Optional[str] = None


@dataclass(frozen=True)
class CounterpartyEvent:
    """payable (money borrowed from a creditor) or receivable (money lent to a debtor)."""

    kind: str
    name: str
    amount: Number
    description: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class ManualEvent:
    """manual or closing entry between two named accounts."""

    debit_account: str
    credit_account: str
    amount: Number
    description: Optional[str] = None
    product_name: Optional[str] = None
    kind: str = "manual"
    note: Optional[str] = None


LedgerEvent = Union[
    PurchaseEvent,
    SaleEvent,
    CreateProductEvent,
    CashEvent,
    PartnerEvent,
    CounterpartyEvent,
    ManualEvent,
]
