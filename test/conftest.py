import itertools
import sys
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class FixedClock:
    """Callable clock whose day can be moved between calls."""

    def __init__(self, day: date = date(2024, 3, 5)):
        self.day = day

    def __call__(self) -> date:
        return self.day


def id_sequence(prefix: str = "tx"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


def make_service(db_path=None, ledger=None, settings=None):
    from bkm.domain.ledger import Ledger
    from bkm.repositories.sqlite_repo import SqliteRepository
    from bkm.services.ledger_service import LedgerService

    repo = None
    if db_path is not None:
        repo = SqliteRepository(db_path)
        repo.init_db()
    return LedgerService(
        ledger if ledger is not None else Ledger(),
        repo=repo,
        settings=settings,
        clock=FixedClock(),
        id_factory=id_sequence(),
    )
