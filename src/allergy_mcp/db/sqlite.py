"""
SQLite Allergy Store — record lookups for the tool handlers

Stores allergy records (name, severity, symptoms, triggers, notes).
Uses WAL mode for concurrent reads during writes. Blocking sqlite
calls run in a worker thread so handlers can put a deadline on them.
"""

import asyncio
import json
import sqlite3
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from allergy_mcp.config import Config
from allergy_mcp.db.seed import SEED_ALLERGIES
from allergy_mcp.server.logger import get_logger

log = get_logger("db")

SEVERITIES = ("mild", "moderate", "severe")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS allergies (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    severity    TEXT NOT NULL DEFAULT 'moderate',
    symptoms    TEXT NOT NULL DEFAULT '[]',
    triggers    TEXT NOT NULL DEFAULT '[]',
    notes       TEXT DEFAULT '',
    created_at  TEXT DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_allergies_name ON allergies(name COLLATE NOCASE);
CREATE INDEX IF NOT EXISTS idx_allergies_severity ON allergies(severity);
"""

_COLUMNS = "id, name, severity, symptoms, triggers, notes"


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_record(row) -> Dict[str, Any]:
    return {
        "id": row[0],
        "name": row[1],
        "severity": row[2],
        "symptoms": json.loads(row[3] or "[]"),
        "triggers": json.loads(row[4] or "[]"),
        "notes": row[5] or "",
    }


class AllergyDB:
    """SQLite database of allergy records."""

    def __init__(self, db_path: Optional[Path] = None):
        self._db_path = db_path or Config.DB_PATH
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def path(self) -> Path:
        return Path(self._db_path)

    async def initialize(self, seed: Optional[bool] = None):
        """Open database, create schema, seed reference records if empty."""
        Config.ensure_dirs()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

        if seed is None:
            seed = Config.SEED_ON_INIT
        if seed and await self.count() == 0:
            for record in SEED_ALLERGIES:
                await self.add(record)
            log.info(f"Seeded {len(SEED_ALLERGIES)} allergy records")

        log.info(f"Database initialized: {self._db_path}")

    def _require_conn(self) -> sqlite3.Connection:
        if not self._conn:
            raise RuntimeError("Database not initialized")
        return self._conn

    async def _fetch(self, sql: str, params: tuple = ()) -> List[tuple]:
        conn = self._require_conn()
        return await asyncio.to_thread(lambda: conn.execute(sql, params).fetchall())

    async def add(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record and return it with its id."""
        conn = self._require_conn()
        if not record.get("name"):
            raise ValueError("Allergy name is required")
        severity = record.get("severity") or "moderate"
        if severity not in SEVERITIES:
            raise ValueError(f"Invalid severity: {severity}")

        stored = {
            "id": record.get("id") or f"alg-{uuid.uuid4().hex[:12]}",
            "name": record["name"].strip(),
            "severity": severity,
            "symptoms": [s.strip() for s in record.get("symptoms") or []],
            "triggers": [t.strip() for t in record.get("triggers") or []],
            "notes": (record.get("notes") or "").strip(),
        }

        def _insert():
            conn.execute(
                f"INSERT INTO allergies ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    stored["id"],
                    stored["name"],
                    stored["severity"],
                    json.dumps(stored["symptoms"], ensure_ascii=False),
                    json.dumps(stored["triggers"], ensure_ascii=False),
                    stored["notes"],
                ),
            )
            conn.commit()

        await asyncio.to_thread(_insert)
        return stored

    async def get(self, allergy_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._fetch(f"SELECT {_COLUMNS} FROM allergies WHERE id = ?", (allergy_id,))
        return _row_to_record(rows[0]) if rows else None

    async def find_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        rows = await self._fetch(
            f"SELECT {_COLUMNS} FROM allergies WHERE name = ? COLLATE NOCASE",
            (name.strip(),),
        )
        return _row_to_record(rows[0]) if rows else None

    async def search(self, query: str, severity: Optional[str] = None) -> List[Dict[str, Any]]:
        """Match ``query`` against name, symptoms and triggers (case-insensitive)."""
        pattern = f"%{_escape_like(query.strip().lower())}%"
        sql = (
            f"SELECT {_COLUMNS} FROM allergies AS a WHERE (lower(a.name) LIKE ? ESCAPE '\\'"
            " OR EXISTS (SELECT 1 FROM json_each(a.symptoms) WHERE lower(value) LIKE ? ESCAPE '\\')"
            " OR EXISTS (SELECT 1 FROM json_each(a.triggers) WHERE lower(value) LIKE ? ESCAPE '\\'))"
        )
        params: list = [pattern, pattern, pattern]
        if severity:
            sql += " AND severity = ?"
            params.append(severity)
        sql += " ORDER BY name COLLATE NOCASE"

        rows = await self._fetch(sql, tuple(params))
        return [_row_to_record(r) for r in rows]

    async def all(self) -> List[Dict[str, Any]]:
        rows = await self._fetch(f"SELECT {_COLUMNS} FROM allergies ORDER BY name COLLATE NOCASE")
        return [_row_to_record(r) for r in rows]

    async def count(self) -> int:
        rows = await self._fetch("SELECT COUNT(*) FROM allergies")
        return rows[0][0]

    async def close(self):
        """Close database."""
        if self._conn:
            self._conn.close()
            self._conn = None
            log.info("Database closed")
