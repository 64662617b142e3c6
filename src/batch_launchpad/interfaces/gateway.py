"""ChainGateway protocol - balance, fee context and transaction submission."""

from __future__ import annotations

from typing import Protocol

from stellar_sdk import Account, TransactionEnvelope

from batch_launchpad.models.batch import FeeContext


class ChainGateway(Protocol):
    """Time-boxed, retried access to the ledger's RPC endpoint."""

    async def get_fee_context(self) -> FeeContext:
        """Latest ledger, base fee and the validity window for a new transaction."""
        ...

    async def get_balance(self, account: str) -> int:
        """Native balance of an account in stroops (0 if it does not exist)."""
        ...

    async def load_account(self, account: str) -> Account:
        """Load an account with its current sequence number."""
        ...

    async def submit_and_confirm(
        self, envelope: TransactionEnvelope, context: FeeContext
    ) -> str:
        """Submit a signed transaction and wait until it is on-ledger.

        Returns the transaction hash.
        """
        ...

    async def close(self) -> None:
        ...
