from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging
import os
import sys

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path
    exports_dir: Path


@dataclass(frozen=True)
class LedgerSettings:
    history_limit: int = 50
    persist_retries: int = 3


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "BookkeepingManager") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    exports = base / "exports"
    db = base / "ledger.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)
    exports.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs, exports_dir=exports)


def _env_int(name: str, default: int, minimum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("config_ignored name=%s value=%r reason=not_an_int", name, raw)
        return default
    if value < minimum:
        log.warning("config_ignored name=%s value=%s reason=below_%s", name, value, minimum)
        return default
    return value


def load_settings() -> LedgerSettings:
    defaults = LedgerSettings()
    return LedgerSettings(
        history_limit=_env_int("BKM_HISTORY_LIMIT", defaults.history_limit, 1),
        persist_retries=_env_int("BKM_PERSIST_RETRIES", defaults.persist_retries, 1),
    )
