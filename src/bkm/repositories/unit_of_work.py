from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol

from bkm.domain.errors import PersistenceError
from bkm.domain.ledger import Ledger
from bkm.domain.models import LedgerSnapshot
from bkm.repositories.contracts import LedgerRepository

log = logging.getLogger("bkm.persistence")


class UnitOfWork(Protocol):
    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...


def persist_ledger(ledger: Ledger, repo: LedgerRepository, retries: int = 3, delay: float = 0.05) -> None:
    attempts = max(1, int(retries))
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            repo.save_state(
                transactions=[t.to_dict() for t in ledger.transactions],
                inventory=[i.to_dict() for i in ledger.inventory],
                partners=[p.to_dict() for p in ledger.partners],
                settings={
                    "cash": ledger.cash,
                    "total_sales": ledger.total_sales,
                    "opening_cash": ledger.opening_cash,
                },
            )
            return
        except (sqlite3.Error, OSError) as e:
            last_error = e
            log.warning("persist_failed attempt=%s/%s error=%s", attempt, attempts, e)
            if attempt < attempts and delay > 0:
                time.sleep(delay)
    log.error("persist_gave_up attempts=%s error=%s", attempts, last_error)
    raise PersistenceError(f"Could not save the ledger after {attempts} attempts: {last_error}") from last_error


@dataclass
class LedgerUnitOfWork:
    """Snapshot on enter, restore on error, persist on success.

    When ``history`` is given the snapshot is pushed there once the operation
    succeeded, so a failed operation never costs an undo step. A persistence failure
    leaves the in-memory change in place and raises ``PersistenceError``.
    """

    ledger: Ledger
    repo: Optional[LedgerRepository] = None
    history: Optional[object] = None
    retries: int = 3
    retry_delay: float = 0.05
    _snapshot: Optional[LedgerSnapshot] = field(default=None, init=False, repr=False)

    def __enter__(self) -> "LedgerUnitOfWork":
        self._snapshot = self.ledger.snapshot()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.ledger.restore(self._snapshot)
            log.warning("unit_of_work_rolled_back error=%s", exc)
            return None
        if self.history is not None:
            self.history.push(self._snapshot)
        if self.repo is not None:
            persist_ledger(self.ledger, self.repo, retries=self.retries, delay=self.retry_delay)
        return None
