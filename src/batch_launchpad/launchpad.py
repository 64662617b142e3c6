"""Process-level wiring - shared gateway and store, one orchestrator per batch."""

from __future__ import annotations

import asyncio
import logging
import signal

from stellar_sdk import ServerAsync
from stellar_sdk.client.aiohttp_client import AiohttpClient

from batch_launchpad.launch.client import HttpLaunchCapability
from batch_launchpad.launch.invoker import RetryingLaunchInvoker
from batch_launchpad.models.batch import BatchOutcome, BatchRequest
from batch_launchpad.models.config import LaunchpadConfig
from batch_launchpad.orchestrator import BatchOrchestrator, ProgressCallback
from batch_launchpad.stellar.gateway import HorizonChainGateway
from batch_launchpad.stellar.signer import KeypairSigner
from batch_launchpad.storage.sqlite import SQLiteResultStore
from batch_launchpad.wallets.generator import WalletBatchGenerator

log = logging.getLogger(__name__)


class Launchpad:
    """Owns the long-lived components shared by every batch.

    The Horizon session and the SQLite connection are opened once in
    ``start()`` and released in ``close()``. Each ``run_batch()`` call gets
    a fresh BatchOrchestrator, so independent batches can run concurrently.
    """

    def __init__(self, cfg: LaunchpadConfig) -> None:
        self._cfg = cfg
        self.store = SQLiteResultStore(cfg.db_path, persist_secrets=cfg.persist_secrets)
        self.generator = WalletBatchGenerator(cfg.network_passphrase)
        self.signer = KeypairSigner.from_secret(cfg.funding_secret) if cfg.funding_secret else None
        self.gateway: HorizonChainGateway | None = None
        self.capability: HttpLaunchCapability | None = None
        self.invoker: RetryingLaunchInvoker | None = None

    async def start(self) -> None:
        log.info("Starting launchpad")
        log.info("  Network: %s", self._cfg.network)
        log.info("  Horizon: %s", self._cfg.horizon_url)
        log.info("  Launch API: %s", self._cfg.launch.api_url)

        # aiohttp sessions must be created inside the running loop
        server = ServerAsync(horizon_url=self._cfg.horizon_url, client=AiohttpClient())
        self.gateway = HorizonChainGateway(server, self._cfg.gateway)
        self.capability = HttpLaunchCapability(
            self._cfg.launch.api_url, self._cfg.launch.token_url_template,
        )
        self.invoker = RetryingLaunchInvoker(self.capability, self._cfg.launch)
        await self.store.initialize()

    async def close(self) -> None:
        if self.capability:
            await self.capability.close()
        if self.gateway:
            await self.gateway.close()
        await self.store.close()
        log.info("Launchpad shut down cleanly")

    async def __aenter__(self) -> Launchpad:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def new_orchestrator(self) -> BatchOrchestrator:
        assert self.gateway is not None and self.invoker is not None, (
            "Launchpad not started. Call start() first."
        )
        if self.signer is None:
            raise RuntimeError("No funding secret configured")
        return BatchOrchestrator(
            gateway=self.gateway,
            generator=self.generator,
            invoker=self.invoker,
            store=self.store,
            signer=self.signer,
            config=self._cfg,
        )

    async def run_batch(
        self,
        request: BatchRequest,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> BatchOutcome:
        return await self.new_orchestrator().run(request, on_progress, cancel)


async def run_launch(
    cfg: LaunchpadConfig,
    request: BatchRequest,
    on_progress: ProgressCallback | None = None,
) -> BatchOutcome:
    """Run one batch; SIGINT/SIGTERM cancel it instead of killing the process."""
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _signal_handler():
        log.warning("Signal received, cancelling batch")
        cancel.set()

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
            installed.append(sig)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    try:
        async with Launchpad(cfg) as pad:
            return await pad.run_batch(request, on_progress, cancel)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
