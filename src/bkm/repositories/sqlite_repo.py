from __future__ import annotations

import json
import logging
import shutil
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

COLLECTIONS = ("transactions", "inventory", "partners")
SETTINGS_ID = "app-settings"
DEFAULT_SETTINGS = {"cash": 0.0, "total_sales": 0.0, "opening_cash": 0.0}

log = logging.getLogger("bkm.persistence")


class SqliteRepository:
    """JSON document store: ordered collections plus a settings singleton."""

    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    @staticmethod
    def _table(collection: str) -> str:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        return collection

    def init_db(self) -> None:
        self.run_migrations()

    def _migrations(self) -> list[tuple[int, Callable[[sqlite3.Cursor], None]]]:
        return [
            (1, self._migration_v1_collections),
            (2, self._migration_v2_settings),
        ]

    def run_migrations(self) -> None:
        """Bring the schema up to date; a failed step puts the old file back."""
        backup = self._backup_before_migrating()
        conn = self._conn()
        applied: list[int] = []
        current = 0
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current = int(cur.fetchone()[0])

            for version, step in self._migrations():
                if version > current:
                    step(cur)
                    cur.execute(
                        "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                        (version,),
                    )
                    applied.append(version)
            conn.commit()
        except Exception as exc:
            conn.rollback()
            log.error("migration_failed db=%s from_version=%s error=%s", self.db_path, current, exc)
            restored = self._restore_backup(backup)
            raise RuntimeError(
                "Database migration failed. Original database restored from automatic backup."
                if restored
                else "Database migration failed."
            ) from exc
        finally:
            conn.close()
        if applied:
            log.info("migrations_applied db=%s versions=%s", self.db_path, ",".join(map(str, applied)))

    def _backup_before_migrating(self) -> Path | None:
        src = Path(self.db_path)
        if not src.exists() or src.stat().st_size == 0:
            return None
        stamp = datetime.now().strftime("%Y%m%d%H%M%S")
        target = src.with_name(f"{src.stem}.pre_migration_{stamp}.bak")
        shutil.copy2(src, target)
        return target

    def _restore_backup(self, backup: Path | None) -> bool:
        if backup is None or not backup.exists():
            return False
        shutil.copy2(backup, self.db_path)
        log.warning("migration_backup_restored db=%s backup=%s", self.db_path, backup.name)
        return True

    def _migration_v1_collections(self, cur: sqlite3.Cursor) -> None:
        for table in COLLECTIONS:
            cur.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    body TEXT NOT NULL
                )
                """
            )
            cur.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_position ON {table}(position)")

    def _migration_v2_settings(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS settings (
                id TEXT PRIMARY KEY,
                body TEXT NOT NULL
            )
            """
        )
        cur.execute(
            "INSERT OR IGNORE INTO settings (id, body) VALUES (?, ?)",
            (SETTINGS_ID, json.dumps(DEFAULT_SETTINGS)),
        )

    # ---------- Collections ----------
    def get_all(self, collection: str) -> list[dict]:
        table = self._table(collection)
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(f"SELECT body FROM {table} ORDER BY position, rowid")
        rows = cur.fetchall()
        conn.close()
        return [json.loads(r[0]) for r in rows]

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        table = self._table(collection)
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(f"SELECT body FROM {table} WHERE id = ?", (str(doc_id),))
        row = cur.fetchone()
        conn.close()
        return json.loads(row[0]) if row else None

    def add(self, collection: str, doc: dict) -> str:
        table = self._table(collection)
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(f"SELECT COALESCE(MAX(position), -1) + 1 FROM {table}")
        position = int(cur.fetchone()[0])
        cur.execute(
            f"INSERT INTO {table} (id, position, body) VALUES (?, ?, ?)",
            (self._doc_id(doc), position, self._dump(doc)),
        )
        conn.commit()
        conn.close()
        return self._doc_id(doc)

    def update(self, collection: str, doc_id: str, changes: dict) -> bool:
        table = self._table(collection)
        conn = self._conn()
        cur = conn.cursor()
        try:
            cur.execute(f"SELECT body FROM {table} WHERE id = ?", (str(doc_id),))
            row = cur.fetchone()
            if not row:
                return False
            doc = json.loads(row[0])
            doc.update(changes)
            cur.execute(f"UPDATE {table} SET body = ? WHERE id = ?", (self._dump(doc), str(doc_id)))
            conn.commit()
            return True
        finally:
            conn.close()

    def delete(self, collection: str, doc_id: str) -> bool:
        table = self._table(collection)
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(f"DELETE FROM {table} WHERE id = ?", (str(doc_id),))
        deleted = cur.rowcount > 0
        conn.commit()
        conn.close()
        return deleted

    def bulk_put(self, collection: str, docs: Iterable[dict]) -> int:
        """Insert or replace documents; new ids go to the end of the collection."""
        table = self._table(collection)
        conn = self._conn()
        cur = conn.cursor()
        try:
            count = self._put_many(cur, table, docs)
            conn.commit()
            return count
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def clear(self, collection: str) -> None:
        table = self._table(collection)
        conn = self._conn()
        conn.execute(f"DELETE FROM {table}")
        conn.commit()
        conn.close()

    # ---------- Settings ----------
    def get_settings(self) -> dict:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT body FROM settings WHERE id = ?", (SETTINGS_ID,))
        row = cur.fetchone()
        conn.close()
        settings = dict(DEFAULT_SETTINGS)
        if row:
            settings.update(json.loads(row[0]))
        return settings

    def update_settings(self, changes: dict) -> dict:
        settings = self.get_settings()
        settings.update(changes)
        conn = self._conn()
        conn.execute(
            """
            INSERT INTO settings (id, body) VALUES (?, ?)
            ON CONFLICT(id) DO UPDATE SET body=excluded.body
            """,
            (SETTINGS_ID, self._dump(settings)),
        )
        conn.commit()
        conn.close()
        return settings

    # ---------- Whole-ledger save ----------
    def save_state(
        self,
        transactions: Iterable[dict],
        inventory: Iterable[dict],
        partners: Iterable[dict],
        settings: dict,
    ) -> None:
        """Replace every collection and the settings in one SQL transaction."""
        conn = self._conn()
        cur = conn.cursor()
        try:
            cur.execute("BEGIN")
            for table, docs in (("transactions", transactions), ("inventory", inventory), ("partners", partners)):
                cur.execute(f"DELETE FROM {table}")
                self._put_many(cur, table, docs)
            merged = dict(DEFAULT_SETTINGS)
            merged.update(settings)
            cur.execute(
                """
                INSERT INTO settings (id, body) VALUES (?, ?)
                ON CONFLICT(id) DO UPDATE SET body=excluded.body
                """,
                (SETTINGS_ID, self._dump(merged)),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def integrity_check(self) -> str:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("PRAGMA integrity_check")
        row = cur.fetchone()
        conn.close()
        return str(row[0]) if row else "unknown"

    # ---------- Helpers ----------
    def _put_many(self, cur: sqlite3.Cursor, table: str, docs: Iterable[dict]) -> int:
        cur.execute(f"SELECT COALESCE(MAX(position), -1) + 1 FROM {table}")
        next_position = int(cur.fetchone()[0])
        count = 0
        for doc in docs:
            doc_id = self._doc_id(doc)
            cur.execute(f"SELECT position FROM {table} WHERE id = ?", (doc_id,))
            row = cur.fetchone()
            if row:
                cur.execute(f"UPDATE {table} SET body = ? WHERE id = ?", (self._dump(doc), doc_id))
            else:
                cur.execute(
                    f"INSERT INTO {table} (id, position, body) VALUES (?, ?, ?)",
                    (doc_id, next_position, self._dump(doc)),
                )
                next_position += 1
            count += 1
        return count

    @staticmethod
    def _doc_id(doc: dict) -> str:
        # partners are keyed by name
        key = doc.get("id", doc.get("name"))
        if key is None or str(key) == "":
            raise ValueError("Document has no id")
        return str(key)

    @staticmethod
    def _dump(doc: dict) -> str:
        return json.dumps(doc, ensure_ascii=False, sort_keys=True)
