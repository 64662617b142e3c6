"""LaunchCapability and LaunchInvoker protocols - per-wallet token creation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from batch_launchpad.models.batch import LaunchOutcome, TokenMetadata, WalletSlot


@dataclass
class CreateResponse:
    """Raw answer of the external creation capability."""

    success: bool
    external_url: str | None = None
    error: str | None = None


class LaunchCapability(Protocol):
    """External token-creation service. Opaque beyond this contract."""

    async def create(self, wallet: WalletSlot, metadata: TokenMetadata) -> CreateResponse:
        ...


class LaunchInvoker(Protocol):
    """Drives one wallet's launch to a terminal outcome.

    Implementations must not raise for launch failures: every call resolves
    to a succeeded or failed LaunchOutcome.
    """

    async def launch(self, wallet: WalletSlot, metadata: TokenMetadata) -> LaunchOutcome:
        ...
