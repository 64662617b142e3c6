"""ResultStore protocol - one persisted document per finalized batch."""

from __future__ import annotations

from typing import Protocol

from batch_launchpad.models.batch import BatchResult


class ResultStore(Protocol):
    """Persists finalized batches and answers lookups."""

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    async def save(self, result: BatchResult) -> str:
        """Store a batch and return its id."""
        ...

    async def find_by_id(self, batch_id: str) -> BatchResult | None:
        ...

    async def search(self, query: str) -> list[BatchResult]:
        """Case-insensitive substring match on token name or symbol."""
        ...

    async def list_recent(self, limit: int = 20) -> list[BatchResult]:
        ...
