from __future__ import annotations

import json
import shutil
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

PRODUCTS = "products"
SALES = "sales"
STOCK_LOGS = "stock_logs"
CASHIERS = "cashiers"
MANAGERS = "managers"
STORES = "stores"
STOCK_TRANSFERS = "stock_transfers"
ADMIN_USERS = "admin_users"
CURRENT_STORE = "current_store"
CURRENT_USER = "current_user"


class LedgerStore(Protocol):
    def get(self, collection: str) -> list[dict]: ...
    def put(self, collection: str, rows: list[dict]) -> None: ...
    def put_many(self, changes: Mapping[str, Any]) -> None: ...
    def get_value(self, key: str) -> Any: ...
    def set_value(self, key: str, value: Any) -> None: ...
    def remove(self, key: str) -> None: ...
    def has(self, key: str) -> bool: ...


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


class MemoryLedgerStore:
    """Key-value store kept in process memory.

    Values are held as JSON text so reads never alias earlier writes.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = _dumps(value)

    def get(self, collection: str) -> list[dict]:
        value = self.get_value(collection)
        return list(value) if value else []

    def put(self, collection: str, rows: list[dict]) -> None:
        self.set_value(collection, list(rows))

    def put_many(self, changes: Mapping[str, Any]) -> None:
        encoded = {key: _dumps(value) for key, value in changes.items()}
        self._data.update(encoded)

    def get_value(self, key: str) -> Any:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set_value(self, key: str, value: Any) -> None:
        self._data[key] = _dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def has(self, key: str) -> bool:
        return key in self._data

    def snapshot(self) -> dict[str, Any]:
        return {key: json.loads(raw) for key, raw in self._data.items()}


class SqliteLedgerStore:
    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def init_db(self) -> None:
        self.run_migrations()

    def run_migrations(self) -> None:
        conn = self._conn()
        backup_path = self._create_pre_migration_backup()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_ledger),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            raise RuntimeError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_ledger(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS ledger (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
        )

    # ---------- Collections ----------
    def get(self, collection: str) -> list[dict]:
        value = self.get_value(collection)
        return list(value) if value else []

    def put(self, collection: str, rows: list[dict]) -> None:
        self.put_many({collection: list(rows)})

    def put_many(self, changes: Mapping[str, Any]) -> None:
        now = datetime.now().isoformat(timespec="seconds")
        conn = self._conn()
        cur = conn.cursor()
        try:
            for key, value in changes.items():
                cur.execute(
                    """
                    INSERT INTO ledger (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                    """,
                    (key, _dumps(value), now),
                )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ---------- Scalars ----------
    def get_value(self, key: str) -> Any:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT value FROM ledger WHERE key = ?", (key,))
            row = cur.fetchone()
        finally:
            conn.close()
        return json.loads(row[0]) if row else None

    def set_value(self, key: str, value: Any) -> None:
        self.put_many({key: value})

    def remove(self, key: str) -> None:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM ledger WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

    def has(self, key: str) -> bool:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT 1 FROM ledger WHERE key = ?", (key,))
            row = cur.fetchone()
        finally:
            conn.close()
        return row is not None

    def integrity_check(self) -> str:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("PRAGMA integrity_check")
            row = cur.fetchone()
        finally:
            conn.close()
        return str(row[0]) if row else "unknown"
