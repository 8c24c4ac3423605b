from __future__ import annotations

import logging
import math
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

from bkm.domain import accounts as acc
from bkm.domain.errors import ConsistencyError, NotFoundError, ValidationError
from bkm.domain.events import ManualEvent
from bkm.domain.ledger import Ledger
from bkm.domain.models import Transaction, to_money
from bkm.services.ledger_service import LedgerService
from bkm.services.statement_service import income_statement
from bkm.services.transaction_engine import TransactionEngine

log = logging.getLogger("bkm.closing")


class ClosingState(str, Enum):
    IDLE = "idle"
    DISTRIBUTION_ENTERED = "distribution_entered"
    CONFIRMED = "confirmed"
    EXPORTED = "exported"
    RESET = "reset"


class StatementExporter(Protocol):
    def export_statements(self, path: Path | str, ledger: Ledger) -> Path: ...


class ClosingProcess:
    """Period close: distribute net income to partners, then start a new period.

    Nothing touches the live ledger before ``finalize``; ``export`` works on a
    scratch copy with the closing entries applied.
    """

    def __init__(self, service: LedgerService, exporter: Optional[StatementExporter] = None):
        self.service = service
        self.exporter = exporter
        self.state = ClosingState.IDLE
        self.percentages: dict[str, float] = {}
        self.net_income = 0.0
        self.shares: dict[str, float] = {}
        self.planned: tuple[ManualEvent, ...] = ()
        self.export_error: Optional[str] = None
        self._confirmed_journal: tuple[Transaction, ...] = ()

    @property
    def ledger(self) -> Ledger:
        return self.service.ledger

    @property
    def total_percentage(self) -> float:
        return sum(self.percentages.values())

    def _require(self, *states: ClosingState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise ConsistencyError(f"Closing is '{self.state.value}'; this step needs: {allowed}.")

    def start(self) -> dict[str, float]:
        self._require(ClosingState.IDLE, ClosingState.RESET)
        partners = self.ledger.partners
        if not partners:
            raise ValidationError("Closing needs at least one partner.")
        share = 100.0 / len(partners)
        self._clear()
        self.percentages = {p.name: share for p in partners}
        self.state = ClosingState.DISTRIBUTION_ENTERED
        log.info("closing_started partners=%s", len(partners))
        return dict(self.percentages)

    def set_percentage(self, partner_name: str, percentage) -> None:
        self._require(ClosingState.DISTRIBUTION_ENTERED)
        if partner_name not in self.percentages:
            raise NotFoundError(f"Partner '{partner_name}' not found.")
        try:
            value = float(percentage)
        except (TypeError, ValueError) as e:
            raise ValidationError("Percentage must be a number.") from e
        if not math.isfinite(value) or value < 0 or value > 100:
            raise ValidationError("Percentage must be between 0 and 100.")
        self.percentages[partner_name] = value

    def confirm(self) -> tuple[ManualEvent, ...]:
        self._require(ClosingState.DISTRIBUTION_ENTERED)
        total = self.total_percentage
        if abs(total - 100) > 0.01:
            raise ValidationError(f"Percentages must add up to 100 (currently {total:.2f}).")

        self.net_income = income_statement(self.ledger.transactions).net_income
        self.shares = self._split(abs(self.net_income))
        self.planned = self._plan(self.net_income, self.shares)
        self._confirmed_journal = tuple(self.ledger.transactions)
        self.state = ClosingState.CONFIRMED
        log.info("closing_confirmed net_income=%.2f entries=%s", self.net_income, len(self.planned))
        return self.planned

    def export(self, path: Path | str) -> bool:
        """Hand a closed copy of the ledger to the exporter.

        Export failures are logged and recorded; the process moves on either way.
        """
        self._require(ClosingState.CONFIRMED)
        self._check_journal_unchanged()
        scratch = Ledger.from_snapshot(self.ledger.snapshot())
        engine = TransactionEngine(scratch, clock=self.service.engine.clock, id_factory=self.service.engine.id_factory)
        for event in self.planned:
            engine.apply(event)

        self.export_error = None
        if self.exporter is None:
            log.info("closing_export_skipped reason=no_exporter")
        else:
            try:
                out = self.exporter.export_statements(path, scratch)
                log.info("closing_exported path=%s", out)
            except Exception as e:
                self.export_error = str(e)
                log.exception("closing_export_failed path=%s", path)
        self.state = ClosingState.EXPORTED
        return self.export_error is None

    def finalize(self) -> list[Transaction]:
        self._require(ClosingState.EXPORTED)
        self._check_journal_unchanged()
        entries = self.service.close_period(self.planned)
        self.state = ClosingState.RESET
        log.info("closing_finalized net_income=%.2f", self.net_income)
        return entries

    def cancel(self) -> None:
        if self.state == ClosingState.RESET:
            raise ConsistencyError("The period is already closed; use undo instead.")
        previous = self.state
        self._clear()
        self.state = ClosingState.IDLE
        log.info("closing_cancelled from_state=%s", previous.value)

    def _check_journal_unchanged(self) -> None:
        # the plan only covers the net income seen at confirm
        if tuple(self.ledger.transactions) == self._confirmed_journal:
            return
        self.net_income = 0.0
        self.shares = {}
        self.planned = ()
        self.export_error = None
        self._confirmed_journal = ()
        self.state = ClosingState.DISTRIBUTION_ENTERED
        log.warning("closing_plan_stale reason=journal_changed")
        raise ConsistencyError("Journal changed since confirmation; confirm the distribution again.")

    # ---------- Planning ----------
    def _clear(self) -> None:
        self.percentages = {}
        self.net_income = 0.0
        self.shares = {}
        self.planned = ()
        self.export_error = None
        self._confirmed_journal = ()

    def _split(self, amount: float) -> dict[str, float]:
        # last partner absorbs the rounding remainder
        names = list(self.percentages)
        total = self.total_percentage or 100.0
        shares: dict[str, float] = {}
        allocated = 0.0
        for idx, name in enumerate(names):
            if idx == len(names) - 1:
                share = to_money(amount - allocated)
            else:
                share = to_money(amount * self.percentages[name] / total)
            shares[name] = share
            allocated = to_money(allocated + share)
        return shares

    def _plan(self, net_income: float, shares: dict[str, float]) -> tuple[ManualEvent, ...]:
        amount = to_money(abs(net_income))
        profit = net_income >= 0
        if profit:
            events = [
                ManualEvent(
                    debit_account=acc.INCOME_SUMMARY,
                    credit_account=acc.PARTNER_CAPITALS,
                    amount=amount,
                    description="Closing: net income to partner capitals",
                    kind="closing",
                )
            ]
        else:
            events = [
                ManualEvent(
                    debit_account=acc.PARTNER_CAPITALS,
                    credit_account=acc.INCOME_SUMMARY,
                    amount=amount,
                    description="Closing: net loss to partner capitals",
                    kind="closing",
                )
            ]
        for name, share in shares.items():
            capital = acc.capital_account(name)
            pct = self.percentages[name]
            if profit:
                debit, credit, what = acc.PARTNER_CAPITALS, capital, "income"
            else:
                debit, credit, what = capital, acc.PARTNER_CAPITALS, "loss"
            events.append(
                ManualEvent(
                    debit_account=debit,
                    credit_account=credit,
                    amount=share,
                    description=f"Closing: {pct:.2f}% of net {what} to {name}",
                    kind="closing",
                )
            )
        # zero amounts (break-even period, 0% partner) are not journal entries
        return tuple(ev for ev in events if ev.amount > 0)
