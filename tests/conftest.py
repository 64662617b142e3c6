"""Shared fixtures for batch_launchpad tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key
from stellar_sdk import Keypair

from batch_launchpad.models.config import GatewayConfig, LaunchConfig, LaunchpadConfig
from batch_launchpad.orchestrator import BatchOrchestrator
from batch_launchpad.stellar.gateway import NETWORK_PASSPHRASES
from batch_launchpad.storage.sqlite import SQLiteResultStore
from batch_launchpad.wallets.generator import WalletBatchGenerator

from tests.mocks import MockGateway, MockInvoker, MockSigner

TEST_KEYPAIR = Keypair.from_raw_ed25519_seed(bytes(range(32)))
TEST_SECRET = TEST_KEYPAIR.secret
TEST_PUBLIC = TEST_KEYPAIR.public_key

TESTNET_PASSPHRASE = NETWORK_PASSPHRASES["testnet"]

EXPLORER_BASE = "https://stellar.expert/explorer/testnet"


def stellar_expert_link(kind: str, id: str, label: str | None = None) -> str:
    """Build an HTML anchor to stellar.expert for the report."""
    url = f"{EXPLORER_BASE}/{kind}/{id}"
    text = label or f"{id[:8]}...{id[-4:]}"
    return f'<a href="{url}" target="_blank">{text}</a>'


# ── Report metadata & explorer links ─────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Stellar Testnet"
    meta["Funding Account"] = TEST_PUBLIC


@pytest.hookimpl(optionalhook=True)
def pytest_html_results_summary(prefix, summary, postfix):
    """Inject a clickable explorer link for the funding account."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Stellar Testnet Explorer Links</strong><br/>"
        f'Funding Account: {stellar_expert_link("account", TEST_PUBLIC, TEST_PUBLIC)}'
        "</div>"
    )


def make_test_config(**overrides) -> LaunchpadConfig:
    """Build a LaunchpadConfig with every wait shrunk to zero."""
    defaults = dict(
        settle_delay=0.0,
        settle_delay_floor=0.0,
        inter_wallet_delay_floor_ms=0,
        amount_per_wallet=35_000_000,
        network="testnet",
        network_passphrase=TESTNET_PASSPHRASE,
        funding_secret=TEST_SECRET,
        db_path=":memory:",
        store_retry_delay=0.0,
        gateway=GatewayConfig(
            rpc_timeout=1.0,
            rpc_retries=2,
            rpc_retry_delay=0.0,
            confirm_poll_interval=0.0,
        ),
        launch=LaunchConfig(
            api_url="http://127.0.0.1:9310/api",
            timeout=1.0,
            retries=2,
            retry_delay=0.0,
        ),
    )
    defaults.update(overrides)
    return LaunchpadConfig(**defaults)


@pytest.fixture
def test_config():
    """Default LaunchpadConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteResultStore."""
    s = SQLiteResultStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def generator():
    return WalletBatchGenerator(TESTNET_PASSPHRASE)


@pytest.fixture
def mock_gateway():
    return MockGateway(funding_account=TEST_PUBLIC)


@pytest.fixture
def mock_invoker():
    return MockInvoker()


@pytest.fixture
def mock_signer():
    return MockSigner(TEST_KEYPAIR)


@pytest.fixture
def orchestrator(test_config, store, generator, mock_gateway, mock_invoker, mock_signer):
    """BatchOrchestrator wired to mocked chain, signer and launch service."""
    return BatchOrchestrator(
        gateway=mock_gateway,
        generator=generator,
        invoker=mock_invoker,
        store=store,
        signer=mock_signer,
        config=test_config,
    )
