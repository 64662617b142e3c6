"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from batch_launchpad.models.config import GatewayConfig, LaunchConfig, LaunchpadConfig
from batch_launchpad.stellar.gateway import NETWORK_PASSPHRASES


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "BATCH_LAUNCHPAD_",
) -> LaunchpadConfig:
    """Load launchpad configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (BATCH_LAUNCHPAD_SECRET, etc.)
        2. TOML config file
        3. Defaults from LaunchpadConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = LaunchpadConfig()

    # ── Launchpad section ──────────────────────────────────
    lp = raw.get("launchpad", {})
    if v := lp.get("log_level"):
        cfg.log_level = str(v)
    if (v := lp.get("settle_delay")) is not None:
        cfg.settle_delay = float(v)
    if (v := lp.get("settle_delay_floor")) is not None:
        cfg.settle_delay_floor = float(v)
    if (v := lp.get("inter_wallet_delay_floor_ms")) is not None:
        cfg.inter_wallet_delay_floor_ms = int(v)
    if v := lp.get("batch_deadline"):
        cfg.batch_deadline = float(v)
    if v := lp.get("amount_per_wallet"):
        cfg.amount_per_wallet = int(v)

    # ── Stellar section ────────────────────────────────────
    stellar = raw.get("stellar", {})
    if v := stellar.get("network"):
        cfg.network = str(v)
    if v := stellar.get("horizon_url"):
        cfg.horizon_url = str(v)
    if v := stellar.get("network_passphrase"):
        cfg.network_passphrase = str(v)
    if v := stellar.get("funding_secret"):
        cfg.funding_secret = str(v)

    defaults = GatewayConfig()
    cfg.gateway = GatewayConfig(
        rpc_timeout=float(stellar.get("rpc_timeout", defaults.rpc_timeout)),
        rpc_retries=int(stellar.get("rpc_retries", defaults.rpc_retries)),
        rpc_retry_delay=float(stellar.get("rpc_retry_delay", defaults.rpc_retry_delay)),
        ledger_margin=int(stellar.get("ledger_margin", defaults.ledger_margin)),
        confirm_poll_interval=float(
            stellar.get("confirm_poll_interval", defaults.confirm_poll_interval)
        ),
    )

    # ── Launch section ─────────────────────────────────────
    launch = raw.get("launch", {})
    launch_defaults = LaunchConfig()
    cfg.launch = LaunchConfig(
        api_url=launch.get("api_url", launch_defaults.api_url),
        timeout=float(launch.get("timeout", launch_defaults.timeout)),
        retries=int(launch.get("retries", launch_defaults.retries)),
        retry_delay=float(launch.get("retry_delay", launch_defaults.retry_delay)),
        token_url_template=launch.get(
            "token_url_template", launch_defaults.token_url_template
        ),
        min_launch_balance=int(
            launch.get("min_launch_balance", launch_defaults.min_launch_balance)
        ),
    )

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)
    if (v := storage.get("persist_secrets")) is not None:
        cfg.persist_secrets = bool(v)
    if (v := storage.get("store_retries")) is not None:
        cfg.store_retries = int(v)
    if (v := storage.get("store_retry_delay")) is not None:
        cfg.store_retry_delay = float(v)

    # ── Environment variable overrides (highest priority) ──
    if secret := os.environ.get(f"{env_prefix}SECRET"):
        cfg.funding_secret = secret
    if net := os.environ.get(f"{env_prefix}NETWORK"):
        cfg.network = net
    if url := os.environ.get(f"{env_prefix}HORIZON_URL"):
        cfg.horizon_url = url
    if url := os.environ.get(f"{env_prefix}LAUNCH_API_URL"):
        cfg.launch.api_url = url
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db

    if not cfg.network_passphrase:
        cfg.network_passphrase = NETWORK_PASSPHRASES.get(cfg.network, "")

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg
