from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from bkm.config import LedgerSettings, load_settings
from bkm.domain.ledger import Ledger
from bkm.repositories.sqlite_repo import SqliteRepository
from bkm.services.closing_service import ClosingProcess
from bkm.services.excel_service import ExcelService
from bkm.services.history_service import UndoManager
from bkm.services.ledger_service import LedgerService
from bkm.services.statement_service import StatementService


@dataclass(frozen=True)
class AppContainer:
    repo: SqliteRepository
    ledger: Ledger
    history: UndoManager
    ledger_service: LedgerService
    statements: StatementService
    excel: ExcelService
    closing: ClosingProcess


def build_container(db_path: Path | str, settings: LedgerSettings | None = None) -> AppContainer:
    settings = settings or load_settings()
    repo = SqliteRepository(db_path)
    repo.init_db()

    ledger = Ledger()
    history = UndoManager(ledger, limit=settings.history_limit)
    ledger_service = LedgerService(ledger, repo=repo, settings=settings, history=history)
    ledger_service.load()

    statements = StatementService(ledger)
    excel = ExcelService(ledger)
    closing = ClosingProcess(ledger_service, exporter=excel)

    return AppContainer(
        repo=repo,
        ledger=ledger,
        history=history,
        ledger_service=ledger_service,
        statements=statements,
        excel=excel,
        closing=closing,
    )
