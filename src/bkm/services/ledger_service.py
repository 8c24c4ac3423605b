from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Sequence, TypeVar

from bkm.config import LedgerSettings
from bkm.domain.errors import AppError, ConsistencyError, PersistenceError, ValidationError
from bkm.domain.events import LedgerEvent, PartnerEvent
from bkm.domain.ledger import Ledger
from bkm.domain.models import (
    InventoryItem,
    LedgerSnapshot,
    Partner,
    Transaction,
    to_money,
)
from bkm.repositories.contracts import LedgerRepository
from bkm.repositories.unit_of_work import LedgerUnitOfWork, UnitOfWork, persist_ledger
from bkm.services.history_service import UndoManager
from bkm.services.transaction_engine import (
    AppliedTransaction,
    TransactionEngine,
    cash_effect,
    parse_amount,
)

log = logging.getLogger("bkm.ledger")

T = TypeVar("T")


@dataclass(frozen=True)
class ReconciliationReport:
    expected_cash: float
    cached_cash: float
    cash_drift: float
    expected_total_sales: float
    cached_total_sales: float
    sales_drift: float
    item_problems: tuple[str, ...]
    generated_at: str

    @property
    def ok(self) -> bool:
        return self.cash_drift == 0 and self.sales_drift == 0 and not self.item_problems


def replay_aggregates(transactions: Iterable[Transaction], opening_cash: float = 0.0) -> tuple[float, float]:
    """Cash and total sales rebuilt from the journal alone."""
    cash = to_money(opening_cash)
    total_sales = 0.0
    for t in transactions:
        cash = to_money(cash + cash_effect(t))
        if t.type == "sale":
            total_sales = to_money(total_sales + t.amount)
    return cash, total_sales


class LedgerService:
    """Single-writer entry point for every ledger mutation.

    Each mutating call runs inside a unit of work: snapshot first, restore on
    error, persist on success.
    """

    def __init__(
        self,
        ledger: Ledger,
        repo: LedgerRepository | None = None,
        settings: LedgerSettings | None = None,
        history: UndoManager | None = None,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        clock: Callable[[], date] | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self.ledger = ledger
        self.repo = repo
        self.settings = settings or LedgerSettings()
        self.history = history or UndoManager(ledger, limit=self.settings.history_limit)
        self.engine = TransactionEngine(ledger, clock=clock, id_factory=id_factory)
        self.uow_factory = uow_factory or (
            lambda: LedgerUnitOfWork(
                ledger, repo, history=self.history, retries=self.settings.persist_retries
            )
        )
        self._lock = threading.RLock()

    def _mutate(self, action: str, fn: Callable[[], T]) -> T:
        with self._lock:
            try:
                with self.uow_factory():
                    return fn()
            except PersistenceError:
                raise
            except AppError as e:
                log.warning("operation_rejected action=%s reason=%s", action, e)
                raise

    # ---------- Loading ----------
    def load(self) -> None:
        if self.repo is None:
            return
        with self._lock:
            settings = self.repo.get_settings()
            snap = LedgerSnapshot(
                transactions=tuple(Transaction.from_dict(d) for d in self.repo.get_all("transactions")),
                cash=to_money(settings.get("cash") or 0.0),
                inventory=tuple(InventoryItem.from_dict(d) for d in self.repo.get_all("inventory")),
                total_sales=to_money(settings.get("total_sales", settings.get("totalSales")) or 0.0),
                partners=tuple(Partner.from_dict(d) for d in self.repo.get_all("partners")),
                opening_cash=to_money(settings.get("opening_cash") or 0.0),
            )
            self.ledger.restore(snap)
            self.history.clear()
        log.info(
            "ledger_loaded transactions=%s items=%s partners=%s cash=%.2f",
            len(snap.transactions), len(snap.inventory), len(snap.partners), snap.cash,
        )

    # ---------- Journal ----------
    def record(self, event: LedgerEvent) -> AppliedTransaction:
        return self._mutate(f"record:{getattr(event, 'kind', '?')}", lambda: self.engine.apply(event))

    def edit_transaction(self, tx_id: str, **changes) -> AppliedTransaction:
        return self._mutate("edit", lambda: self.engine.edit_transaction(tx_id, **changes))

    def delete_transaction(self, tx_id: str) -> AppliedTransaction:
        return self._mutate("delete", lambda: self.engine.delete_transaction(tx_id))

    # ---------- Partners and products ----------
    def setup_partners(self, partners: Sequence[tuple[str, object]]) -> list[Transaction]:
        """Register partners with their opening capital (one investing entry each)."""
        names = [str(name or "").strip() for name, _ in partners]
        if not names:
            raise ValidationError("At least one partner is required.")
        if any(not n for n in names):
            raise ValidationError("Partner name is required.")
        if len(set(names)) != len(names):
            raise ValidationError("Partner names must be unique.")
        for n in names:
            if self.ledger.find_partner(n) is not None:
                raise ValidationError(f"Partner '{n}' already exists.")

        def run() -> list[Transaction]:
            return [
                self.engine.apply(PartnerEvent("investing", name, capital)).entry
                for name, (_, capital) in zip(names, partners)
            ]

        return self._mutate("setup_partners", run)

    def delete_partner(self, name: str) -> None:
        def run() -> None:
            partner = self.ledger.require_partner(name)
            if partner.capital != 0:
                raise ConsistencyError(
                    f"Partner '{name}' still holds {partner.capital:.2f} of capital."
                )
            self.ledger.remove_partner(name)
            log.info("partner_deleted name=%s", name)

        self._mutate("delete_partner", run)

    def set_selling_price(self, product_name: str, price, item_type: Optional[str] = "created") -> InventoryItem:
        def run() -> InventoryItem:
            item = self.ledger.require_item(product_name, item_type)
            item.selling_price = parse_amount(price, "Selling price", allow_zero=True)
            return item

        return self._mutate("set_selling_price", run)

    # ---------- History and period ----------
    def undo(self) -> bool:
        with self._lock:
            undone = self.history.undo()
            if undone and self.repo is not None:
                persist_ledger(self.ledger, self.repo, retries=self.settings.persist_retries)
            return undone

    def close_period(self, events: Iterable[LedgerEvent] = ()) -> list[Transaction]:
        """Apply closing events, then start a new period, as one undoable step."""
        events = list(events)

        def run() -> list[Transaction]:
            entries = [self.engine.apply(ev).entry for ev in events]
            self.ledger.clear_period()
            log.info("period_reset closing_entries=%s opening_cash=%.2f", len(entries), self.ledger.opening_cash)
            return entries

        return self._mutate("close_period", run)

    def reset_period(self) -> None:
        self.close_period(())

    # ---------- Consistency ----------
    def reconcile(self) -> ReconciliationReport:
        with self._lock:
            expected_cash, expected_sales = replay_aggregates(self.ledger.transactions, self.ledger.opening_cash)
            report = ReconciliationReport(
                expected_cash=expected_cash,
                cached_cash=self.ledger.cash,
                cash_drift=to_money(self.ledger.cash - expected_cash),
                expected_total_sales=expected_sales,
                cached_total_sales=self.ledger.total_sales,
                sales_drift=to_money(self.ledger.total_sales - expected_sales),
                item_problems=tuple(self.ledger.invariant_violations()),
                generated_at=datetime.now().isoformat(timespec="seconds"),
            )
        if report.ok:
            log.info("reconcile_ok cash=%.2f total_sales=%.2f", report.cached_cash, report.cached_total_sales)
        else:
            log.warning(
                "reconcile_drift cash_drift=%.2f sales_drift=%.2f item_problems=%s",
                report.cash_drift, report.sales_drift, len(report.item_problems),
            )
        return report
