"""Configuration models for the launchpad."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class GatewayConfig:
    """Horizon access: time boxes, retries and the validity margin."""

    rpc_timeout: float = 5.0  # seconds per attempt
    rpc_retries: int = 2
    rpc_retry_delay: float = 1.0
    ledger_margin: int = 20  # ledgers added to the latest one for the validity window
    confirm_poll_interval: float = 2.0


@dataclass
class LaunchConfig:
    """External token-launch service settings."""

    api_url: str = "http://127.0.0.1:3000/api"
    timeout: float = 20.0  # seconds per attempt
    retries: int = 2
    retry_delay: float = 1.0
    token_url_template: str = "https://stellar.expert/explorer/public/asset/{symbol}-{issuer}"
    min_launch_balance: int = 0  # stroops, 0 disables the pre-check


@dataclass
class LaunchpadConfig:
    """Complete launchpad configuration."""

    log_level: str = "info"

    # Batch pacing
    settle_delay: float = 2.0  # seconds after funding confirms
    settle_delay_floor: float = 2.0
    inter_wallet_delay_floor_ms: int = 5000
    batch_deadline: float | None = None  # seconds, None for no ceiling
    amount_per_wallet: int = 35_000_000  # stroops (3.5 XLM)

    # Stellar
    network: str = "testnet"
    horizon_url: str = "https://horizon-testnet.stellar.org"
    network_passphrase: str = ""  # derived from network when empty
    funding_secret: str = ""  # loaded from env var BATCH_LAUNCHPAD_SECRET

    # Storage
    db_path: str = "~/.batch_launchpad/batches.db"
    persist_secrets: bool = True
    store_retries: int = 3
    store_retry_delay: float = 1.0  # seconds between save attempts

    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    launch: LaunchConfig = field(default_factory=LaunchConfig)
