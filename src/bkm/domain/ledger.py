from __future__ import annotations

import copy
from typing import Iterable, Optional

from bkm.domain.errors import NotFoundError
from bkm.domain.models import InventoryItem, LedgerSnapshot, Partner, Transaction, to_money


class Ledger:
    """Current balances plus the ordered journal.

    Pure state holder: the transaction engine owns every business rule and is
    the only writer that keeps balances and journal in step.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        inventory: Iterable[InventoryItem] = (),
        partners: Iterable[Partner] = (),
        cash: float = 0.0,
        total_sales: float = 0.0,
        opening_cash: float = 0.0,
    ):
        self.transactions: list[Transaction] = list(transactions)
        self.inventory: list[InventoryItem] = list(inventory)
        self.partners: list[Partner] = list(partners)
        self.cash = to_money(cash)
        self.total_sales = to_money(total_sales)
        self.opening_cash = to_money(opening_cash)

    # ---------- Inventory ----------
    def find_item(self, name: str, item_type: Optional[str] = None) -> Optional[InventoryItem]:
        for item in self.inventory:
            if item.name == name and (item_type is None or item.type == item_type):
                return item
        return None

    def require_item(self, name: str, item_type: Optional[str] = None) -> InventoryItem:
        item = self.find_item(name, item_type)
        if item is None:
            kind = f" ({item_type})" if item_type else ""
            raise NotFoundError(f"Product '{name}'{kind} not found in inventory.")
        return item

    def first_item_of_type(self, item_type: str) -> Optional[InventoryItem]:
        return next((i for i in self.inventory if i.type == item_type), None)

    def upsert_item(self, item: InventoryItem) -> InventoryItem:
        for idx, existing in enumerate(self.inventory):
            if existing.id == item.id:
                self.inventory[idx] = item
                return item
        self.inventory.append(item)
        return item

    @property
    def inventory_value(self) -> float:
        return to_money(sum(i.total_value for i in self.inventory))

    # ---------- Partners ----------
    def find_partner(self, name: str) -> Optional[Partner]:
        return next((p for p in self.partners if p.name == name), None)

    def require_partner(self, name: str) -> Partner:
        partner = self.find_partner(name)
        if partner is None:
            raise NotFoundError(f"Partner '{name}' not found.")
        return partner

    def add_partner(self, partner: Partner) -> Partner:
        self.partners.append(partner)
        return partner

    def remove_partner(self, name: str) -> None:
        self.partners = [p for p in self.partners if p.name != name]

    # ---------- Journal ----------
    def find_transaction(self, tx_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.id == tx_id), None)

    def require_transaction(self, tx_id: str) -> Transaction:
        tx = self.find_transaction(tx_id)
        if tx is None:
            raise NotFoundError(f"Transaction '{tx_id}' not found.")
        return tx

    def append(self, tx: Transaction) -> None:
        self.transactions.append(tx)

    def replace(self, tx: Transaction) -> None:
        for idx, existing in enumerate(self.transactions):
            if existing.id == tx.id:
                self.transactions[idx] = tx
                return
        raise NotFoundError(f"Transaction '{tx.id}' not found.")

    def remove_transaction(self, tx_id: str) -> None:
        self.transactions = [t for t in self.transactions if t.id != tx_id]

    def clear_period(self) -> None:
        """Start a new accounting period: journal and sales reset, balances stay."""
        self.transactions = []
        self.total_sales = 0.0
        self.opening_cash = self.cash

    # ---------- Snapshots ----------
    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            transactions=tuple(copy.deepcopy(self.transactions)),
            cash=self.cash,
            inventory=tuple(copy.deepcopy(self.inventory)),
            total_sales=self.total_sales,
            partners=tuple(copy.deepcopy(self.partners)),
            opening_cash=self.opening_cash,
        )

    def restore(self, snap: LedgerSnapshot) -> None:
        self.transactions = list(copy.deepcopy(snap.transactions))
        self.inventory = list(copy.deepcopy(snap.inventory))
        self.partners = list(copy.deepcopy(snap.partners))
        self.cash = snap.cash
        self.total_sales = snap.total_sales
        self.opening_cash = snap.opening_cash

    @classmethod
    def from_snapshot(cls, snap: LedgerSnapshot) -> "Ledger":
        ledger = cls()
        ledger.restore(snap)
        return ledger

    # ---------- Invariants ----------
    def invariant_violations(self) -> list[str]:
        problems: list[str] = []
        for item in self.inventory:
            if item.on_hand < 0:
                problems.append(f"{item.type}/{item.name}: negative stock {item.on_hand}")
            expected = to_money(item.on_hand * item.unit_cost)
            # unit costs are stored to the cent, so allow half a cent per unit
            if abs(expected - item.total_value) > 0.01 + abs(item.on_hand) * 0.005:
                problems.append(
                    f"{item.type}/{item.name}: total value {item.total_value:.2f} != {expected:.2f}"
                )
        seen: set[str] = set()
        for p in self.partners:
            if p.name in seen:
                problems.append(f"duplicate partner '{p.name}'")
            seen.add(p.name)
        return problems
