"""Horizon chain gateway - balances, fee context, submission and confirmation."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from stellar_sdk import Account, ServerAsync, TransactionEnvelope
from stellar_sdk.exceptions import (
    BadRequestError,
    BaseHorizonError,
    BaseRequestError,
    NotFoundError,
)

from batch_launchpad.errors import (
    GatewayTimeout,
    GatewayUnavailable,
    TransactionExpired,
    TransactionRejected,
)
from batch_launchpad.models.batch import STROOPS_PER_XLM, FeeContext
from batch_launchpad.models.config import GatewayConfig
from batch_launchpad.retry import RetryExhausted, RetryPolicy

log = logging.getLogger(__name__)

NETWORK_PASSPHRASES = {
    "testnet": "Test SDF Network ; September 2015",
    "mainnet": "Public Global Stellar Network ; September 2015",
    "futurenet": "Test SDF Future Network ; October 2022",
}

# Horizon answers 504 when a submitted transaction is not yet in a ledger.
_HTTP_GATEWAY_TIMEOUT = 504

_LEDGER_CLOSE_SECONDS = 6


def xlm_to_stroops(amount: str | Decimal) -> int:
    return int(Decimal(amount) * STROOPS_PER_XLM)


def stroops_to_xlm(stroops: int) -> str:
    """Format stroops as the 7-decimal amount string Horizon expects."""
    return f"{Decimal(stroops) / STROOPS_PER_XLM:.7f}"


def _result_codes(exc: BaseHorizonError) -> dict:
    extras = exc.extras or {}
    return extras.get("result_codes") or {}


class HorizonChainGateway:
    """ChainGateway over a long-lived ``ServerAsync`` handle.

    The server (and its HTTP session) is created once per process and
    injected here; ``close()`` releases it at shutdown.
    """

    def __init__(self, server: ServerAsync, config: GatewayConfig | None = None) -> None:
        self._server = server
        self._cfg = config or GatewayConfig()
        self._retry = RetryPolicy(
            max_attempts=self._cfg.rpc_retries,
            timeout=self._cfg.rpc_timeout,
            delay=self._cfg.rpc_retry_delay,
        )

    async def close(self) -> None:
        await self._server.close()

    # ── Fee context ────────────────────────────────────────

    async def get_fee_context(self) -> FeeContext:
        """Fetch the latest ledger and base fee, retried with a fixed backoff."""

        async def _fetch() -> FeeContext:
            page = await self._server.ledgers().order(desc=True).limit(1).call()
            records = page["_embedded"]["records"]
            if not records:
                raise GatewayUnavailable("no ledgers returned")
            latest = int(records[0]["sequence"])
            base_fee = await self._server.fetch_base_fee()
            return FeeContext(
                reference=latest,
                base_fee=int(base_fee),
                validity_window=latest + self._cfg.ledger_margin,
            )

        try:
            ctx = await self._retry.run(_fetch, "get_fee_context")
        except RetryExhausted as exc:
            if exc.all_timed_out:
                raise GatewayTimeout(f"fee context timed out after {exc.attempts} attempts") from exc
            raise GatewayUnavailable(str(exc)) from exc

        log.debug(
            "Fee context: ledger=%d base_fee=%d valid_until=%d",
            ctx.reference, ctx.base_fee, ctx.validity_window,
        )
        return ctx

    # ── Accounts ───────────────────────────────────────────

    async def get_balance(self, account: str) -> int:
        """Native balance in stroops; an account not created yet holds 0."""
        try:
            data = await asyncio.wait_for(
                self._server.accounts().account_id(account).call(),
                self._cfg.rpc_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise GatewayTimeout(f"balance query for {account[:8]} timed out") from exc
        except NotFoundError:
            return 0
        except BaseRequestError as exc:
            raise GatewayUnavailable(f"balance query for {account[:8]} failed: {exc}") from exc

        for balance in data.get("balances", []):
            if balance.get("asset_type") == "native":
                return xlm_to_stroops(balance["balance"])
        return 0

    async def load_account(self, account: str) -> Account:
        try:
            return await asyncio.wait_for(
                self._server.load_account(account), self._cfg.rpc_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise GatewayTimeout(f"loading account {account[:8]} timed out") from exc
        except NotFoundError as exc:
            raise GatewayUnavailable(f"account {account[:8]} does not exist") from exc
        except BaseRequestError as exc:
            raise GatewayUnavailable(f"loading account {account[:8]} failed: {exc}") from exc

    # ── Submission ─────────────────────────────────────────

    async def submit_and_confirm(
        self, envelope: TransactionEnvelope, context: FeeContext
    ) -> str:
        """Submit, then poll by hash until on-ledger or the window closes."""
        tx_hash = envelope.hash_hex()
        log.info(
            "Submitting transaction %s (valid until ledger %d)",
            tx_hash[:16], context.validity_window,
        )

        try:
            resp = await asyncio.wait_for(
                self._server.submit_transaction(envelope, skip_memo_required_check=True),
                self._cfg.rpc_timeout,
            )
            if resp.get("successful", True):
                log.info("Transaction %s confirmed in ledger %s", tx_hash[:16], resp.get("ledger"))
                return resp.get("hash", tx_hash)
            raise TransactionRejected(f"transaction {tx_hash[:16]} failed on-ledger")
        except BadRequestError as exc:
            codes = _result_codes(exc)
            log.error("Transaction %s rejected: %s", tx_hash[:16], codes)
            raise TransactionRejected(f"transaction rejected: {codes or exc}", codes) from exc
        except asyncio.TimeoutError:
            log.warning("Submit of %s timed out, polling for confirmation", tx_hash[:16])
        except BaseHorizonError as exc:
            if exc.status != _HTTP_GATEWAY_TIMEOUT:
                raise GatewayUnavailable(f"submit failed: {exc}") from exc
            log.warning("Horizon timed out on %s, polling for confirmation", tx_hash[:16])
        except BaseRequestError as exc:
            log.warning("Submit of %s hit a transport error (%s), polling", tx_hash[:16], exc)

        return await self._await_confirmation(tx_hash, context)

    async def _await_confirmation(self, tx_hash: str, context: FeeContext) -> str:
        loop = asyncio.get_running_loop()
        ledgers_left = max(context.validity_window - context.reference, 1)
        give_up_at = loop.time() + ledgers_left * _LEDGER_CLOSE_SECONDS * 2

        while True:
            try:
                record = await asyncio.wait_for(
                    self._server.transactions().transaction(tx_hash).call(),
                    self._cfg.rpc_timeout,
                )
                if record.get("successful"):
                    log.info("Transaction %s confirmed in ledger %s", tx_hash[:16], record.get("ledger"))
                    return tx_hash
                raise TransactionRejected(f"transaction {tx_hash[:16]} failed on-ledger")
            except NotFoundError:
                pass
            except asyncio.TimeoutError:
                log.debug("Confirmation poll for %s timed out", tx_hash[:16])
            except BaseRequestError as exc:
                log.warning("Confirmation poll for %s failed: %s", tx_hash[:16], exc)

            # Only give up once the window is provably closed.
            try:
                latest = (await self.get_fee_context()).reference
            except (GatewayTimeout, GatewayUnavailable) as exc:
                log.warning("Could not read latest ledger: %s", exc)
                latest = None
            if latest is not None and latest > context.validity_window:
                raise TransactionExpired(
                    f"transaction {tx_hash[:16]} not seen by ledger {context.validity_window}"
                )
            if latest is None and loop.time() > give_up_at:
                raise GatewayUnavailable(
                    f"lost contact with Horizon while confirming {tx_hash[:16]}"
                )

            await asyncio.sleep(self._cfg.confirm_poll_interval)
