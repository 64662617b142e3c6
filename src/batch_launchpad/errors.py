"""Error taxonomy for batch creation, funding and chain access."""

from __future__ import annotations


class LaunchpadError(Exception):
    """Base class for all batch_launchpad errors."""

    code = "error"

    @property
    def reason(self) -> str:
        return str(self) or self.code


class InvalidRequest(LaunchpadError):
    """A BatchRequest failed validation."""

    code = "invalid_request"


class GenerationFailed(LaunchpadError):
    """Wallet keypair generation failed."""

    code = "generation_failed"


class FundingFailed(LaunchpadError):
    """The funding transaction could not be built, submitted or confirmed."""

    code = "funding_failed"


class InsufficientFundingBalance(FundingFailed):
    """Funding account cannot cover count * amount_per_wallet."""

    code = "insufficient_funding_balance"

    def __init__(self, balance: int, required: int) -> None:
        super().__init__(
            f"insufficient funding balance: have {balance} stroops, need {required}"
        )
        self.balance = balance
        self.required = required


class Cancelled(LaunchpadError):
    """The caller cancelled the batch."""

    code = "cancelled"


class PersistenceFailed(LaunchpadError):
    """A finalized batch could not be written to the result store."""

    code = "persistence_failed"


class OutcomeAlreadyTerminal(LaunchpadError):
    """A wallet outcome was resolved twice."""

    code = "outcome_already_terminal"


# ── Chain gateway ──────────────────────────────────────


class GatewayError(LaunchpadError):
    code = "gateway_error"


class GatewayTimeout(GatewayError):
    """Every attempt of a gateway call ran out of time."""

    code = "gateway_timeout"


class GatewayUnavailable(GatewayError):
    """A gateway call kept failing until retries were exhausted."""

    code = "gateway_unavailable"


class TransactionExpired(GatewayError):
    """The validity window closed before the transaction was seen on-ledger."""

    code = "transaction_expired"


class TransactionRejected(GatewayError):
    """The network returned a terminal error for a submitted transaction."""

    code = "transaction_rejected"

    def __init__(self, message: str, result_codes: dict | None = None) -> None:
        super().__init__(message)
        self.result_codes = result_codes or {}
