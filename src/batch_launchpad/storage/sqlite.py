"""SQLite implementation of the ResultStore protocol."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import aiosqlite

from batch_launchpad.models.batch import BatchResult

SCHEMA = """
-- One document per batch; wallets are embedded, not joined
CREATE TABLE IF NOT EXISTS batches (
    request_id TEXT PRIMARY KEY,
    token_name TEXT NOT NULL,
    token_symbol TEXT NOT NULL,
    wallet_count INTEGER NOT NULL,
    succeeded INTEGER NOT NULL,
    document TEXT NOT NULL,
    created_at TEXT NOT NULL,
    stored_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_batches_name ON batches(lower(token_name));
CREATE INDEX IF NOT EXISTS idx_batches_symbol ON batches(lower(token_symbol));
CREATE INDEX IF NOT EXISTS idx_batches_created ON batches(created_at);
"""


class SQLiteResultStore:
    """SQLite-backed implementation of the ResultStore protocol.

    Each finalized batch is a single JSON document. Token names are not
    unique: relaunching the same token yields a new row.
    """

    def __init__(self, db_path: str, persist_secrets: bool = True) -> None:
        self._db_path = db_path
        self._persist_secrets = persist_secrets
        self._db: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Writes ─────────────────────────────────────────────

    async def save(self, result: BatchResult) -> str:
        document = result.to_document(include_secrets=self._persist_secrets)
        async with self._write_lock:
            await self.db.execute(
                "INSERT INTO batches"
                " (request_id, token_name, token_symbol, wallet_count, succeeded,"
                " document, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    result.request_id,
                    result.metadata.name,
                    result.metadata.symbol,
                    len(result.wallets),
                    len(result.succeeded),
                    json.dumps(document),
                    result.created_at,
                ),
            )
            await self.db.commit()
        return result.request_id

    # ── Reads ──────────────────────────────────────────────

    async def find_by_id(self, batch_id: str) -> BatchResult | None:
        async with self.db.execute(
            "SELECT document FROM batches WHERE request_id=?", (batch_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_result(row) if row else None

    async def search(self, query: str) -> list[BatchResult]:
        """Case-insensitive substring match on token name or symbol."""
        needle = query.strip().lower()
        async with self.db.execute(
            "SELECT document FROM batches"
            " WHERE instr(lower(token_name), ?) > 0 OR instr(lower(token_symbol), ?) > 0"
            " ORDER BY created_at DESC",
            (needle, needle),
        ) as cur:
            rows = await cur.fetchall()
            return [_row_to_result(r) for r in rows]

    async def list_recent(self, limit: int = 20) -> list[BatchResult]:
        async with self.db.execute(
            "SELECT document FROM batches ORDER BY created_at DESC LIMIT ?", (limit,)
        ) as cur:
            rows = await cur.fetchall()
            return [_row_to_result(r) for r in rows]


def _row_to_result(row: aiosqlite.Row) -> BatchResult:
    return BatchResult.from_document(json.loads(row["document"]))
