"""TransactionSigner protocol - signs with keys the orchestrator never sees."""

from __future__ import annotations

from typing import Protocol

from stellar_sdk import TransactionEnvelope


class TransactionSigner(Protocol):
    """Signing capability of the funding account holder."""

    @property
    def public_key(self) -> str:
        ...

    async def sign(self, envelope: TransactionEnvelope) -> TransactionEnvelope:
        ...
