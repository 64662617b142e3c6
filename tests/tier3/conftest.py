"""Tier 3 fixtures: real Stellar testnet.

Gates on Horizon reachability and funds a throwaway treasury account via
Friendbot so a real funding transaction can be submitted and confirmed.
"""

from __future__ import annotations

import httpx
import pytest
from stellar_sdk import Keypair, ServerAsync
from stellar_sdk.client.aiohttp_client import AiohttpClient

from batch_launchpad.models.config import GatewayConfig
from batch_launchpad.stellar.gateway import HorizonChainGateway

HORIZON_URL = "https://horizon-testnet.stellar.org"
FRIENDBOT_URL = "https://friendbot.stellar.org"


@pytest.fixture(scope="session")
def testnet_reachable():
    """Gate: skip all tier3 tests if Horizon testnet is unreachable."""
    try:
        r = httpx.get(HORIZON_URL, timeout=10)
        if r.status_code == 200:
            return True
        pytest.skip(f"Horizon testnet returned {r.status_code}")
    except (httpx.ConnectError, httpx.TimeoutException) as exc:
        pytest.skip(f"Horizon testnet unreachable: {exc}")


@pytest.fixture(scope="session")
def treasury_keypair(testnet_reachable):
    """Fresh treasury account funded by Friendbot."""
    kp = Keypair.random()
    try:
        r = httpx.get(f"{FRIENDBOT_URL}?addr={kp.public_key}", timeout=30)
    except (httpx.ConnectError, httpx.TimeoutException) as exc:
        pytest.skip(f"Friendbot unreachable: {exc}")
    if r.status_code != 200:
        pytest.skip(f"Friendbot returned {r.status_code} for {kp.public_key}")
    return kp


@pytest.fixture
async def horizon_gateway(testnet_reachable):
    gateway = HorizonChainGateway(
        ServerAsync(horizon_url=HORIZON_URL, client=AiohttpClient()),
        GatewayConfig(rpc_timeout=15.0, rpc_retries=3, rpc_retry_delay=2.0),
    )
    yield gateway
    await gateway.close()
