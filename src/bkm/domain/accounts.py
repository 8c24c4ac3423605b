from __future__ import annotations

import re
from typing import Optional

CASH = "Cash"
INVENTORY = "Inventory"
REVENUE = "Revenue"
EXPENSES = "Expenses"
GAIN = "Gain"
LOSS = "Loss"
OTHER_PAYMENT = "Other Payment"
INCOME_SUMMARY = "Income Summary"
PARTNER_CAPITALS = "Partner Capitals"

_RECEIVABLE = re.compile(r"^Accounts Receivable - (?P<name>.+?)\s*$")
_PAYABLE = re.compile(r"^Accounts Payable - (?P<name>.+?)\s*$")
_INVENTORY_ITEM = re.compile(r"^Inventory - (?P<name>.+?)\s*$")


def has_token(account: str, token: str) -> bool:
    return re.search(rf"\b{re.escape(token)}\b", account or "") is not None


def capital_account(partner_name: str) -> str:
    return f"{partner_name} Capital"


def receivable_account(name: str) -> str:
    return f"Accounts Receivable - {name}"


def payable_account(name: str) -> str:
    return f"Accounts Payable - {name}"


def inventory_account(name: str | None = None) -> str:
    return f"{INVENTORY} - {name}" if name else INVENTORY


def receivable_name(account: str) -> Optional[str]:
    m = _RECEIVABLE.match(account or "")
    return m.group("name") if m else None


def payable_name(account: str) -> Optional[str]:
    m = _PAYABLE.match(account or "")
    return m.group("name") if m else None


def inventory_item_name(account: str) -> Optional[str]:
    m = _INVENTORY_ITEM.match(account or "")
    return m.group("name") if m else None
