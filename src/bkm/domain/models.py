from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Optional

ITEM_TYPES = ("bottles", "oil", "box", "other", "created")

TRANSACTION_TYPES = (
    "purchase",
    "sale",
    "expense",
    "withdrawal",
    "create",
    "gain",
    "loss",
    "closing",
    "manual",
    "investing",
    "deposit",
    "payable",
    "receivable",
)

PAYMENT_METHODS = ("cash", "credit", "other")

_LABEL_AMOUNT = re.compile(r"\s*\$-?[\d,]+(?:\.\d+)?\s*$")


def to_money(value: float) -> float:
    # round() leaves -0.0 behind on negative zero results
    return round(float(value), 2) + 0.0


def format_date(d: date | None = None) -> str:
    d = d or date.today()
    return f"{d.month}/{d.day}/{d.year}"


def account_from_label(label: str) -> str:
    """'Cash $50.00' -> 'Cash'. Only used when loading label-only documents."""
    return _LABEL_AMOUNT.sub("", label or "").strip()


def render_label(account: str, amount: float) -> str:
    return f"{account} ${amount:.2f}"


@dataclass
class InventoryItem:
    id: str
    name: str
    type: str
    quantity: float = 0.0
    unit_cost: float = 0.0
    total_value: float = 0.0
    grams: Optional[float] = None
    milliliters: Optional[float] = None
    selling_price: Optional[float] = None

    @property
    def is_oil(self) -> bool:
        return self.type == "oil"

    @property
    def on_hand(self) -> float:
        """Stock in the unit the item is tracked by (grams for oil)."""
        return float(self.grams or 0.0) if self.is_oil else float(self.quantity)

    def revalue(self) -> None:
        self.total_value = to_money(self.on_hand * self.unit_cost)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, doc: dict) -> "InventoryItem":
        return cls(
            id=str(doc["id"]),
            name=str(doc["name"]),
            type=str(doc["type"]),
            quantity=float(doc.get("quantity") or 0.0),
            unit_cost=float(doc.get("unit_cost", doc.get("unitCost")) or 0.0),
            total_value=float(doc.get("total_value", doc.get("totalValue")) or 0.0),
            grams=_opt_float(doc.get("grams")),
            milliliters=_opt_float(doc.get("milliliters")),
            selling_price=_opt_float(doc.get("selling_price", doc.get("sellingPrice"))),
        )


@dataclass
class Partner:
    name: str
    capital: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, doc: dict) -> "Partner":
        return cls(name=str(doc["name"]), capital=float(doc.get("capital") or 0.0))


@dataclass(frozen=True)
class ConsumedMaterial:
    item_type: str
    name: str
    quantity: float


@dataclass(frozen=True)
class Transaction:
    id: str
    date: str
    type: str
    description: str
    amount: float
    debit_account: str
    credit_account: str
    payment_method: Optional[str] = None
    product_name: Optional[str] = None
    product_type: Optional[str] = None
    quantity: Optional[float] = None
    grams: Optional[float] = None
    unit_cost: Optional[float] = None
    partner_name: Optional[str] = None
    creditor_name: Optional[str] = None
    debtor_name: Optional[str] = None
    customer_name: Optional[str] = None
    order_number: Optional[str] = None
    note: Optional[str] = None
    box_name: Optional[str] = None
    box_quantity: Optional[float] = None
    consumed: tuple[ConsumedMaterial, ...] = field(default_factory=tuple)

    @property
    def debit(self) -> str:
        return render_label(self.debit_account, self.amount)

    @property
    def credit(self) -> str:
        return render_label(self.credit_account, self.amount)

    @property
    def paid_in_cash(self) -> bool:
        return (self.payment_method or "cash") == "cash"

    def to_dict(self) -> dict:
        doc = asdict(self)
        doc["consumed"] = [asdict(m) for m in self.consumed]
        doc["debit"] = self.debit
        doc["credit"] = self.credit
        return doc

    @classmethod
    def from_dict(cls, doc: dict) -> "Transaction":
        debit_account = doc.get("debit_account") or account_from_label(doc.get("debit", ""))
        credit_account = doc.get("credit_account") or account_from_label(doc.get("credit", ""))
        return cls(
            id=str(doc["id"]),
            date=str(doc.get("date", "")),
            type=str(doc["type"]),
            description=str(doc.get("description", "")),
            amount=float(doc.get("amount") or 0.0),
            debit_account=debit_account,
            credit_account=credit_account,
            payment_method=doc.get("payment_method", doc.get("paymentMethod")),
            product_name=doc.get("product_name", doc.get("productName")),
            product_type=doc.get("product_type", doc.get("productType")),
            quantity=_opt_float(doc.get("quantity")),
            grams=_opt_float(doc.get("grams")),
            unit_cost=_opt_float(doc.get("unit_cost", doc.get("unitCost"))),
            partner_name=doc.get("partner_name", doc.get("partnerName")),
            creditor_name=doc.get("creditor_name", doc.get("creditorName")),
            debtor_name=doc.get("debtor_name", doc.get("debtorName")),
            customer_name=doc.get("customer_name", doc.get("customerName")),
            order_number=doc.get("order_number", doc.get("orderNumber")),
            note=doc.get("note"),
            box_name=doc.get("box_name"),
            box_quantity=_opt_float(doc.get("box_quantity")),
            consumed=tuple(
                ConsumedMaterial(str(m["item_type"]), str(m["name"]), float(m["quantity"]))
                for m in doc.get("consumed") or ()
            ),
        )


@dataclass(frozen=True)
class LedgerSnapshot:
    transactions: tuple[Transaction, ...]
    cash: float
    inventory: tuple[InventoryItem, ...]
    total_sales: float
    partners: tuple[Partner, ...]
    opening_cash: float = 0.0


def _opt_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    v = float(value)
    return v if math.isfinite(v) else None
