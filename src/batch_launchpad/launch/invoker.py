"""Retrying launch invoker - resolves every wallet launch to a terminal outcome."""

from __future__ import annotations

import asyncio
import logging

from batch_launchpad.interfaces.launch import LaunchCapability
from batch_launchpad.models.batch import LaunchOutcome, TokenMetadata, WalletSlot
from batch_launchpad.models.config import LaunchConfig
from batch_launchpad.retry import RetryExhausted, RetryPolicy

log = logging.getLogger(__name__)


class LaunchRefused(Exception):
    """The capability answered without a success indicator."""


class RetryingLaunchInvoker:
    """Calls the launch capability with a bounded, time-boxed retry.

    Failures never escape ``launch()``: they come back as
    ``LaunchOutcome.failed(reason, attempts)`` so one bad wallet cannot
    abort the batch.
    """

    def __init__(self, capability: LaunchCapability, config: LaunchConfig | None = None) -> None:
        self._capability = capability
        self._cfg = config or LaunchConfig()
        self._retry = RetryPolicy(
            max_attempts=self._cfg.retries,
            timeout=self._cfg.timeout,
            delay=self._cfg.retry_delay,
        )

    async def launch(self, wallet: WalletSlot, metadata: TokenMetadata) -> LaunchOutcome:
        min_balance = self._cfg.min_launch_balance
        if min_balance and wallet.confirmed_balance is not None and wallet.confirmed_balance < min_balance:
            log.warning(
                "%s balance %d below launch minimum %d, skipping",
                wallet.name, wallet.confirmed_balance, min_balance,
            )
            return LaunchOutcome.failed("insufficient_balance", attempts=0)

        attempts = 0

        async def _attempt() -> str:
            nonlocal attempts
            attempts += 1
            resp = await self._capability.create(wallet, metadata)
            if not resp.success:
                raise LaunchRefused(resp.error or "creation returned no success indicator")
            return resp.external_url or self._token_url(wallet, metadata)

        try:
            url = await self._retry.run(_attempt, f"launch {wallet.name}")
        except RetryExhausted as exc:
            reason = _reason(exc.last_error)
            log.error("%s failed after %d attempts: %s", wallet.name, exc.attempts, reason)
            return LaunchOutcome.failed(reason, attempts=exc.attempts)
        except Exception as exc:
            log.error("%s launch error: %s", wallet.name, exc, exc_info=True)
            return LaunchOutcome.failed(_reason(exc), attempts=max(attempts, 1))

        log.info("%s launched: %s", wallet.name, url)
        return LaunchOutcome.succeeded(url, attempts=attempts)

    def _token_url(self, wallet: WalletSlot, metadata: TokenMetadata) -> str:
        """Explorer URL for a launch that succeeded without naming one."""
        template = self._cfg.token_url_template
        if not template:
            return wallet.asset.public_key
        return template.format(symbol=metadata.symbol, issuer=wallet.asset.public_key)


def _reason(exc: BaseException | None) -> str:
    if exc is None:
        return "unknown"
    if isinstance(exc, asyncio.TimeoutError):
        return "timeout"
    return str(exc) or type(exc).__name__
