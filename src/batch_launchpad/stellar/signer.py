"""Keypair signer for the funding account."""

from __future__ import annotations

import logging

from stellar_sdk import Keypair, TransactionEnvelope

log = logging.getLogger(__name__)


class KeypairSigner:
    """Signs funding transactions with a locally held secret.

    Stands in for the caller's wallet: the orchestrator only ever calls
    ``sign()`` and never reads the secret.
    """

    def __init__(self, keypair: Keypair) -> None:
        self._keypair = keypair

    @classmethod
    def from_secret(cls, secret: str) -> KeypairSigner:
        return cls(Keypair.from_secret(secret))

    @property
    def public_key(self) -> str:
        return self._keypair.public_key

    async def sign(self, envelope: TransactionEnvelope) -> TransactionEnvelope:
        envelope.sign(self._keypair)
        log.debug("Signed %s with %s", envelope.hash_hex()[:16], self.public_key[:8])
        return envelope
