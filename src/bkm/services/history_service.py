from __future__ import annotations

import logging
from collections import deque
from typing import Callable, TypeVar

from bkm.domain.ledger import Ledger
from bkm.domain.models import LedgerSnapshot

log = logging.getLogger("bkm.history")

T = TypeVar("T")


class UndoManager:
    """Bounded stack of ledger snapshots.

    The oldest snapshot is dropped once ``limit`` is reached.
    """

    def __init__(self, ledger: Ledger, limit: int = 50):
        if limit < 1:
            raise ValueError("History limit must be >= 1")
        self.ledger = ledger
        self._stack: deque[LedgerSnapshot] = deque(maxlen=limit)

    @property
    def depth(self) -> int:
        return len(self._stack)

    def snapshot(self) -> LedgerSnapshot:
        snap = self.ledger.snapshot()
        self._stack.append(snap)
        return snap

    def push(self, snap: LedgerSnapshot) -> None:
        """Record a snapshot taken earlier, once the operation it guards succeeded."""
        self._stack.append(snap)

    def undo(self) -> bool:
        if not self._stack:
            return False
        self.ledger.restore(self._stack.pop())
        log.info("undo_applied depth=%s transactions=%s cash=%.2f", self.depth, len(self.ledger.transactions), self.ledger.cash)
        return True

    def discard(self) -> None:
        """Drop the most recent snapshot without restoring it."""
        if self._stack:
            self._stack.pop()

    def clear(self) -> None:
        self._stack.clear()

    def run_transactionally(self, fn: Callable[[], T]) -> T:
        snap = self.ledger.snapshot()
        try:
            result = fn()
        except Exception as e:
            self.ledger.restore(snap)
            log.warning("operation_rolled_back reason=%s", e)
            raise
        self.push(snap)
        return result
