from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from bkm.application.container import build_container
from bkm.config import get_app_paths
from bkm.domain.errors import AppError
from bkm.logging_config import setup_logging

log = logging.getLogger(__name__)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bkm", description="Bookkeeping ledger tools")
    parser.add_argument("--db", type=Path, default=None, help="ledger database (defaults to the app data dir)")
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="write the financial statements workbook")
    export.add_argument("path", type=Path, nargs="?", default=None)

    sub.add_parser("check", help="compare cached balances with a journal replay")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)

    container = build_container(args.db or paths.db_path)

    try:
        if args.command == "export":
            target = args.path or paths.exports_dir / f"statements_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
            out = container.excel.export_statements(target)
            print(f"Statements written to {out}")
            return 0

        report = container.ledger_service.reconcile()
        print(f"Cash:        cached {report.cached_cash:.2f}  journal {report.expected_cash:.2f}  drift {report.cash_drift:.2f}")
        print(f"Total sales: cached {report.cached_total_sales:.2f}  journal {report.expected_total_sales:.2f}  drift {report.sales_drift:.2f}")
        for problem in report.item_problems:
            print(f"Inventory:   {problem}")
        print(f"SQLite:      {container.repo.integrity_check()}")
        return 0 if report.ok else 1
    except AppError as e:
        log.error("command_failed command=%s error=%s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
