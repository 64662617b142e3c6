"""Batch orchestrator - generation, funding, confirmation and paced launches."""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from typing import Awaitable, Callable, Union

from batch_launchpad.errors import (
    Cancelled,
    FundingFailed,
    GenerationFailed,
    InsufficientFundingBalance,
    InvalidRequest,
    LaunchpadError,
    PersistenceFailed,
)
from batch_launchpad.interfaces.gateway import ChainGateway
from batch_launchpad.interfaces.launch import LaunchInvoker
from batch_launchpad.interfaces.signer import TransactionSigner
from batch_launchpad.interfaces.store import ResultStore
from batch_launchpad.models.batch import (
    BatchOutcome,
    BatchProgress,
    BatchRequest,
    BatchResult,
    BatchState,
    LaunchOutcome,
    WalletSlot,
)
from batch_launchpad.models.config import LaunchpadConfig
from batch_launchpad.retry import RetryExhausted, RetryPolicy
from batch_launchpad.wallets.generator import WalletBatchGenerator

log = logging.getLogger(__name__)

ProgressCallback = Callable[[BatchProgress], Union[None, Awaitable[None]]]

REASON_CANCELLED = "Cancelled"
REASON_DEADLINE = "DeadlineExceeded"


class BatchOrchestrator:
    """Runs one batch through its state machine.

    VALIDATING -> GENERATING -> FUNDING -> CONFIRMING -> LAUNCHING -> FINALIZED,
    or ABORTED from any state before LAUNCHING. Once launching starts the
    batch always finalizes: per-wallet failures are recorded, not raised.

    Use one orchestrator per batch. Gateway and store may be shared across
    orchestrators running concurrently.
    """

    def __init__(
        self,
        gateway: ChainGateway,
        generator: WalletBatchGenerator,
        invoker: LaunchInvoker,
        store: ResultStore,
        signer: TransactionSigner,
        config: LaunchpadConfig,
    ) -> None:
        self._gateway = gateway
        self._generator = generator
        self._invoker = invoker
        self._store = store
        self._signer = signer
        self._cfg = config
        self._state = BatchState.VALIDATING
        self._cancel = asyncio.Event()

    @property
    def state(self) -> BatchState:
        return self._state

    def cancel(self) -> None:
        """Stop the batch at the next check or wait."""
        log.info("Cancellation requested (state: %s)", self._state.value)
        self._cancel.set()

    def _set_state(self, state: BatchState) -> None:
        log.debug("Batch state: %s -> %s", self._state.value, state.value)
        self._state = state

    # ── Entry point ────────────────────────────────────────

    async def run(
        self,
        request: BatchRequest,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> BatchOutcome:
        """Run a batch to FINALIZED or ABORTED."""
        if cancel is not None:
            self._cancel = cancel
        request_id = uuid.uuid4().hex
        self._set_state(BatchState.VALIDATING)

        log.info(
            "Batch %s: %d wallets of %d stroops for %s (%s)",
            request_id[:8], request.requested_count, request.amount_per_wallet,
            request.metadata.name, request.metadata.symbol,
        )

        try:
            self._validate(request)
            self._raise_if_cancelled()

            self._set_state(BatchState.GENERATING)
            slots = self._generate(request)
            self._raise_if_cancelled()

            self._set_state(BatchState.FUNDING)
            tx_hash = await self._fund(request, slots)
        except LaunchpadError as exc:
            return self._abort(request_id, exc)

        # Wallets are funded from here on: always finalize so their keys persist.
        self._set_state(BatchState.CONFIRMING)
        for slot in slots:
            slot.funding_tx_hash = tx_hash
        settle = max(self._cfg.settle_delay, self._cfg.settle_delay_floor)
        log.info("Funding confirmed (%s), settling %.1fs", tx_hash[:16], settle)
        await self._wait(settle)

        self._set_state(BatchState.LAUNCHING)
        delay_ms = request.effective_delay_ms(self._cfg.inter_wallet_delay_floor_ms)
        cancelled = await self._launch_all(request, slots, delay_ms, on_progress)

        result = BatchResult(
            request_id=request_id,
            metadata=request.metadata,
            wallets=slots,
            funding_account=request.funding_account,
            inter_wallet_delay_ms=delay_ms,
            funding_tx_hash=tx_hash,
            cancelled=cancelled,
        )
        stored_id, error = await self._save(result)
        self._set_state(BatchState.FINALIZED)

        log.info(
            "Batch %s finalized: %d succeeded, %d failed%s",
            request_id[:8], len(result.succeeded), len(result.failed),
            " (cancelled)" if cancelled else "",
        )
        return BatchOutcome(
            request_id=request_id,
            state=BatchState.FINALIZED,
            result=result,
            stored_id=stored_id,
            error=error,
        )

    # ── Pre-launch stages ──────────────────────────────────

    def _validate(self, request: BatchRequest) -> None:
        request.validate()
        if self._signer.public_key != request.funding_account:
            raise InvalidRequest(
                f"signer {self._signer.public_key[:8]} does not control "
                f"funding account {request.funding_account[:8]}"
            )

    def _generate(self, request: BatchRequest) -> list[WalletSlot]:
        try:
            return self._generator.generate(request.requested_count, request.amount_per_wallet)
        except GenerationFailed:
            raise
        except Exception as exc:
            raise GenerationFailed(str(exc)) from exc

    async def _fund(self, request: BatchRequest, slots: list[WalletSlot]) -> str:
        """Check balance, build, sign and submit the funding transaction."""
        try:
            balance = await self._gateway.get_balance(request.funding_account)
            required = self._generator.required_funding(len(slots), request.amount_per_wallet)
            if balance < required:
                raise InsufficientFundingBalance(balance, required)

            context = await self._gateway.get_fee_context()
            account = await self._gateway.load_account(request.funding_account)
            envelope = self._generator.build_funding_transaction(account, slots, context)
            signed = await self._signer.sign(envelope)

            # Last point at which cancelling leaves nothing on-chain.
            self._raise_if_cancelled()
            return await self._gateway.submit_and_confirm(signed, context)
        except (FundingFailed, Cancelled):
            raise
        except LaunchpadError as exc:
            raise FundingFailed(f"{exc.code}: {exc.reason}") from exc
        except Exception as exc:
            raise FundingFailed(str(exc) or type(exc).__name__) from exc

    async def _save(self, result: BatchResult) -> tuple[str | None, PersistenceFailed | None]:
        """Persist the result. A store that keeps failing leaves it with the caller."""
        policy = RetryPolicy(
            max_attempts=self._cfg.store_retries,
            timeout=None,
            delay=self._cfg.store_retry_delay,
        )
        try:
            return await policy.run(lambda: self._store.save(result), "save batch"), None
        except RetryExhausted as exc:
            log.error(
                "Batch %s could not be stored after %d attempts: %s",
                result.request_id[:8], exc.attempts, exc.last_error,
            )
            return None, PersistenceFailed(f"result not stored: {exc.last_error}")

    def _abort(self, request_id: str, exc: LaunchpadError) -> BatchOutcome:
        log.error("Batch %s aborted in %s: %s", request_id[:8], self._state.value, exc.reason)
        self._set_state(BatchState.ABORTED)
        return BatchOutcome(request_id=request_id, state=BatchState.ABORTED, error=exc)

    # ── Launching ──────────────────────────────────────────

    async def _launch_all(
        self,
        request: BatchRequest,
        slots: list[WalletSlot],
        delay_ms: int,
        on_progress: ProgressCallback | None,
    ) -> bool:
        """Launch wallets in index order. Returns True if cancelled part-way."""
        loop = asyncio.get_running_loop()
        deadline = None
        if self._cfg.batch_deadline:
            deadline = loop.time() + self._cfg.batch_deadline
        total = len(slots)

        for slot in slots:
            if self._cancel.is_set():
                self._fail_remaining(slots, REASON_CANCELLED)
                return True
            if deadline is not None and loop.time() >= deadline:
                log.warning("Batch deadline reached before %s", slot.name)
                self._fail_remaining(slots, REASON_DEADLINE)
                return False

            await self._refresh_balance(slot)
            slot.resolve(await self._launch_one(slot, request))

            await self._emit(
                on_progress,
                BatchProgress(
                    current=slot.index + 1,
                    total=total,
                    status=f"{slot.name} {slot.outcome.status.value}",
                ),
            )

            if slot.index == total - 1:
                continue
            wait_s = delay_ms / 1000
            if deadline is None or deadline - loop.time() > wait_s:
                await self._wait(wait_s)
                continue
            # The next launch would start past the deadline.
            await self._wait(max(deadline - loop.time(), 0.0))
            if not self._cancel.is_set():
                log.warning("Batch deadline reached after %s", slot.name)
                self._fail_remaining(slots, REASON_DEADLINE)
                return False

        return False

    async def _launch_one(self, slot: WalletSlot, request: BatchRequest) -> LaunchOutcome:
        try:
            return await self._invoker.launch(slot, request.metadata)
        except Exception as exc:
            log.error("Launch invoker raised for %s: %s", slot.name, exc, exc_info=True)
            return LaunchOutcome.failed(str(exc) or type(exc).__name__, attempts=0)

    async def _refresh_balance(self, slot: WalletSlot) -> None:
        """Best effort: a failed query just leaves confirmed_balance unset."""
        try:
            slot.confirmed_balance = await self._gateway.get_balance(slot.spend.public_key)
        except Exception as exc:
            log.warning("Balance query for %s failed: %s", slot.name, exc)

    def _fail_remaining(self, slots: list[WalletSlot], reason: str) -> None:
        for slot in slots:
            if not slot.outcome.is_terminal:
                slot.resolve(LaunchOutcome.failed(reason, attempts=0))

    # ── Helpers ────────────────────────────────────────────

    def _raise_if_cancelled(self) -> None:
        if self._cancel.is_set():
            raise Cancelled("batch cancelled by caller")

    async def _wait(self, seconds: float) -> bool:
        """Suspend for ``seconds`` or until cancelled. True if cancelled."""
        if seconds <= 0:
            return self._cancel.is_set()
        try:
            await asyncio.wait_for(self._cancel.wait(), seconds)
            return True
        except asyncio.TimeoutError:
            return False

    @staticmethod
    async def _emit(on_progress: ProgressCallback | None, progress: BatchProgress) -> None:
        if on_progress is None:
            return
        try:
            ret = on_progress(progress)
            if inspect.isawaitable(ret):
                await ret
        except Exception as exc:
            log.warning("Progress callback failed: %s", exc)
