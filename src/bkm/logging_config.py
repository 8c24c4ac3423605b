from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# dedicated files next to app.log; records still propagate to the root handlers
CHANNELS = {
    "bkm.journal": "journal.log",
    "bkm.closing": "closing.log",
    "bkm.persistence": "persistence.log",
}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.WARNING:
            payload["where"] = f"{record.module}:{record.lineno}"
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _file_handler(path: Path, level: int) -> RotatingFileHandler:
    fh = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=5, encoding="utf-8")
    fh.setFormatter(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    fh.setLevel(level)
    return fh


def setup_logging(logs_dir: Path, level: int = logging.INFO) -> None:
    """Attach JSON file handlers once per process.

    app.log gets everything at ``level``, errors.log only errors, and each
    entry in ``CHANNELS`` its own file.
    """
    logs_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    root.addHandler(_file_handler(logs_dir / "app.log", level))
    root.addHandler(_file_handler(logs_dir / "errors.log", logging.ERROR))

    for name, filename in CHANNELS.items():
        channel = logging.getLogger(name)
        channel.addHandler(_file_handler(logs_dir / filename, logging.INFO))
        channel.setLevel(logging.INFO)
