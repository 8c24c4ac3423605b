from .transaction_engine import AppliedTransaction, BalanceDelta, TransactionEngine
from .history_service import UndoManager
from .statement_service import StatementService
from .ledger_service import LedgerService, ReconciliationReport
from .closing_service import ClosingProcess, ClosingState
from .excel_service import ExcelService

__all__ = [
    "AppliedTransaction",
    "BalanceDelta",
    "TransactionEngine",
    "UndoManager",
    "StatementService",
    "LedgerService",
    "ReconciliationReport",
    "ClosingProcess",
    "ClosingState",
    "ExcelService",
]
