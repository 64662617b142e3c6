"""Data models for batch_launchpad."""

from batch_launchpad.models.batch import (
    BatchOutcome,
    BatchProgress,
    BatchRequest,
    BatchResult,
    BatchState,
    FeeContext,
    LaunchOutcome,
    LaunchStatus,
    TokenMetadata,
    WalletKeys,
    WalletSlot,
    MAX_WALLETS_PER_BATCH,
    STROOPS_PER_XLM,
)
from batch_launchpad.models.config import GatewayConfig, LaunchConfig, LaunchpadConfig

__all__ = [
    "BatchOutcome", "BatchProgress", "BatchRequest", "BatchResult", "BatchState",
    "FeeContext", "LaunchOutcome", "LaunchStatus", "TokenMetadata",
    "WalletKeys", "WalletSlot", "MAX_WALLETS_PER_BATCH", "STROOPS_PER_XLM",
    "GatewayConfig", "LaunchConfig", "LaunchpadConfig",
]
