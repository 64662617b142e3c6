"""Wallet batch generator - fresh keypairs and the single funding transaction."""

from __future__ import annotations

import logging

from stellar_sdk import Account, Keypair, TransactionBuilder, TransactionEnvelope

from batch_launchpad.errors import GenerationFailed
from batch_launchpad.models.batch import FeeContext, WalletKeys, WalletSlot
from batch_launchpad.stellar.gateway import stroops_to_xlm

log = logging.getLogger(__name__)

# Wall-clock bound added alongside the ledger bound on funding transactions
FUNDING_TX_TIMEOUT = 300  # seconds


def _keys(keypair: Keypair) -> WalletKeys:
    return WalletKeys(public_key=keypair.public_key, secret=keypair.secret)


class WalletBatchGenerator:
    """Generates wallet slots and builds the transaction that funds them.

    Key generation is local and uses ``Keypair.random()`` (OS CSPRNG).
    Funding is one transaction with one CreateAccount operation per wallet,
    so either every wallet is funded or none is.
    """

    def __init__(self, network_passphrase: str) -> None:
        self._network_passphrase = network_passphrase

    def generate(self, count: int, amount_per_wallet: int) -> list[WalletSlot]:
        """Produce ``count`` pending wallet slots with spend and asset keypairs."""
        if count <= 0:
            raise GenerationFailed(f"cannot generate {count} wallets")

        slots = [
            WalletSlot(
                index=i,
                spend=_keys(Keypair.random()),
                asset=_keys(Keypair.random()),
                funded_amount=amount_per_wallet,
            )
            for i in range(count)
        ]

        public_keys = {s.spend.public_key for s in slots} | {s.asset.public_key for s in slots}
        if len(public_keys) != 2 * count:
            raise GenerationFailed("duplicate keypair generated")

        log.info("Generated %d wallet pairs", count)
        return slots

    @staticmethod
    def required_funding(count: int, amount_per_wallet: int) -> int:
        return count * amount_per_wallet

    def build_funding_transaction(
        self,
        source_account: Account,
        slots: list[WalletSlot],
        context: FeeContext,
    ) -> TransactionEnvelope:
        """Build the unsigned funding transaction: one CreateAccount per slot."""
        builder = TransactionBuilder(
            source_account=source_account,
            network_passphrase=self._network_passphrase,
            base_fee=context.base_fee,
        )
        for slot in slots:
            builder.append_create_account_op(
                destination=slot.spend.public_key,
                starting_balance=stroops_to_xlm(slot.funded_amount),
            )
        builder.set_ledger_bounds(0, context.validity_window)
        builder.set_timeout(FUNDING_TX_TIMEOUT)

        envelope = builder.build()
        log.info(
            "Built funding transaction %s: %d wallets, fee %d stroops",
            envelope.hash_hex()[:16], len(slots), envelope.transaction.fee,
        )
        return envelope
