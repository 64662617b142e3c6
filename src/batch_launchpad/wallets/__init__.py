"""Wallet generation."""

from batch_launchpad.wallets.generator import WalletBatchGenerator

__all__ = ["WalletBatchGenerator"]
