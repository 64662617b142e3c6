"""Batch data model: wallet slots, launch outcomes, requests and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from stellar_sdk import StrKey

from batch_launchpad.errors import InvalidRequest, LaunchpadError, OutcomeAlreadyTerminal

STROOPS_PER_XLM = 10_000_000

# A Stellar transaction carries at most 100 operations, one per funded wallet.
MAX_WALLETS_PER_BATCH = 100


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class LaunchStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class BatchState(str, Enum):
    """Orchestrator state machine for a single batch."""

    VALIDATING = "validating"
    GENERATING = "generating"
    FUNDING = "funding"
    CONFIRMING = "confirming"
    LAUNCHING = "launching"
    FINALIZED = "finalized"  # terminal
    ABORTED = "aborted"  # terminal, only before launching starts


# ---------------------------------------------------------------------------
# Wallets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LaunchOutcome:
    """Per-wallet launch result: pending, succeeded(url) or failed(reason)."""

    status: LaunchStatus = LaunchStatus.PENDING
    external_url: str | None = None
    reason: str | None = None
    attempts: int = 0

    @classmethod
    def pending(cls) -> LaunchOutcome:
        return cls()

    @classmethod
    def succeeded(cls, external_url: str, attempts: int = 1) -> LaunchOutcome:
        return cls(LaunchStatus.SUCCEEDED, external_url=external_url, attempts=attempts)

    @classmethod
    def failed(cls, reason: str, attempts: int) -> LaunchOutcome:
        return cls(LaunchStatus.FAILED, reason=reason, attempts=attempts)

    @property
    def is_terminal(self) -> bool:
        return self.status is not LaunchStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "external_url": self.external_url,
            "reason": self.reason,
            "attempts": self.attempts,
        }

    @classmethod
    def from_dict(cls, data: dict) -> LaunchOutcome:
        return cls(
            status=LaunchStatus(data.get("status", "pending")),
            external_url=data.get("external_url"),
            reason=data.get("reason"),
            attempts=int(data.get("attempts", 0)),
        )


@dataclass(frozen=True)
class WalletKeys:
    """A keypair in string form. ``secret`` is None once redacted."""

    public_key: str
    secret: str | None


@dataclass
class WalletSlot:
    """One generated wallet: spend keys, asset keys and its launch outcome."""

    index: int
    spend: WalletKeys
    asset: WalletKeys
    funded_amount: int  # stroops
    name: str = ""
    funding_tx_hash: str | None = None
    confirmed_balance: int | None = None  # stroops, best effort
    outcome: LaunchOutcome = field(default_factory=LaunchOutcome.pending)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"Wallet {self.index + 1}"

    def resolve(self, outcome: LaunchOutcome) -> None:
        """Move the outcome from pending to a terminal state, exactly once."""
        if self.outcome.is_terminal:
            raise OutcomeAlreadyTerminal(
                f"{self.name} already {self.outcome.status.value}"
            )
        if not outcome.is_terminal:
            raise OutcomeAlreadyTerminal(f"{self.name}: cannot resolve to pending")
        self.outcome = outcome

    def to_dict(self, include_secrets: bool = True) -> dict:
        return {
            "index": self.index,
            "name": self.name,
            "spend_public_key": self.spend.public_key,
            "spend_secret": self.spend.secret if include_secrets else None,
            "asset_public_key": self.asset.public_key,
            "asset_secret": self.asset.secret if include_secrets else None,
            "funded_amount": self.funded_amount,
            "funding_tx_hash": self.funding_tx_hash,
            "confirmed_balance": self.confirmed_balance,
            "outcome": self.outcome.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> WalletSlot:
        return cls(
            index=int(data["index"]),
            name=data.get("name", ""),
            spend=WalletKeys(data["spend_public_key"], data.get("spend_secret")),
            asset=WalletKeys(data["asset_public_key"], data.get("asset_secret")),
            funded_amount=int(data["funded_amount"]),
            funding_tx_hash=data.get("funding_tx_hash"),
            confirmed_balance=data.get("confirmed_balance"),
            outcome=LaunchOutcome.from_dict(data.get("outcome", {})),
        )


# ---------------------------------------------------------------------------
# Requests and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenMetadata:
    """Token description passed to the launch service for every wallet."""

    name: str
    symbol: str
    description: str = ""
    image_ref: str | None = None  # content-addressed image reference
    twitter: str | None = None
    website: str | None = None
    telegram: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "description": self.description,
            "image_ref": self.image_ref,
            "twitter": self.twitter,
            "website": self.website,
            "telegram": self.telegram,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TokenMetadata:
        return cls(
            name=data["name"],
            symbol=data["symbol"],
            description=data.get("description") or "",
            image_ref=data.get("image_ref"),
            twitter=data.get("twitter"),
            website=data.get("website"),
            telegram=data.get("telegram"),
        )


@dataclass(frozen=True)
class BatchRequest:
    """Caller input for one batch."""

    requested_count: int
    amount_per_wallet: int  # stroops
    inter_wallet_delay_ms: int
    metadata: TokenMetadata
    funding_account: str  # public key of the treasury account

    def validate(self) -> None:
        """Raise InvalidRequest if the request is malformed."""
        if self.requested_count <= 0:
            raise InvalidRequest("requested_count must be positive")
        if self.requested_count > MAX_WALLETS_PER_BATCH:
            raise InvalidRequest(
                f"requested_count must be at most {MAX_WALLETS_PER_BATCH}"
            )
        if self.amount_per_wallet <= 0:
            raise InvalidRequest("amount_per_wallet must be positive")
        if self.inter_wallet_delay_ms < 0:
            raise InvalidRequest("inter_wallet_delay_ms must not be negative")
        if not self.metadata.name.strip() or not self.metadata.symbol.strip():
            raise InvalidRequest("token name and symbol are required")
        if not StrKey.is_valid_ed25519_public_key(self.funding_account):
            raise InvalidRequest(f"invalid funding account: {self.funding_account!r}")

    def effective_delay_ms(self, floor_ms: int) -> int:
        """Inter-wallet delay, never below the configured floor."""
        return max(self.inter_wallet_delay_ms, floor_ms)

    @property
    def total_funding(self) -> int:
        return self.requested_count * self.amount_per_wallet


@dataclass
class BatchResult:
    """One persisted batch: metadata plus every wallet, embedded."""

    request_id: str
    metadata: TokenMetadata
    wallets: list[WalletSlot]
    funding_account: str
    inter_wallet_delay_ms: int
    funding_tx_hash: str | None = None
    cancelled: bool = False
    created_at: str = field(default_factory=_now)

    @property
    def succeeded(self) -> list[WalletSlot]:
        return [w for w in self.wallets if w.outcome.status is LaunchStatus.SUCCEEDED]

    @property
    def failed(self) -> list[WalletSlot]:
        return [w for w in self.wallets if w.outcome.status is LaunchStatus.FAILED]

    def to_document(self, include_secrets: bool = True) -> dict:
        return {
            "request_id": self.request_id,
            "metadata": self.metadata.to_dict(),
            "wallets": [w.to_dict(include_secrets) for w in self.wallets],
            "funding_account": self.funding_account,
            "funding_tx_hash": self.funding_tx_hash,
            "inter_wallet_delay_ms": self.inter_wallet_delay_ms,
            "cancelled": self.cancelled,
            "created_at": self.created_at,
        }

    @classmethod
    def from_document(cls, doc: dict) -> BatchResult:
        return cls(
            request_id=doc["request_id"],
            metadata=TokenMetadata.from_dict(doc["metadata"]),
            wallets=[WalletSlot.from_dict(w) for w in doc.get("wallets", [])],
            funding_account=doc.get("funding_account", ""),
            funding_tx_hash=doc.get("funding_tx_hash"),
            inter_wallet_delay_ms=int(doc.get("inter_wallet_delay_ms", 0)),
            cancelled=bool(doc.get("cancelled", False)),
            created_at=doc.get("created_at", ""),
        )


@dataclass(frozen=True)
class BatchProgress:
    """Progress update emitted after each wallet's launch resolves."""

    current: int
    total: int
    status: str = ""


@dataclass
class BatchOutcome:
    """What the orchestrator hands back: a finalized result or an abort.

    A finalized outcome carries ``error`` only when the result could not be
    stored; ``result`` then holds the only copy of the wallet keys.
    """

    request_id: str
    state: BatchState
    result: BatchResult | None = None
    error: LaunchpadError | None = None
    stored_id: str | None = None

    @property
    def aborted(self) -> bool:
        return self.state is BatchState.ABORTED

    @property
    def reason(self) -> str | None:
        return self.error.reason if self.error else None


@dataclass(frozen=True)
class FeeContext:
    """Network fee and validity context for building a transaction."""

    reference: int  # latest closed ledger sequence
    base_fee: int  # stroops per operation
    validity_window: int  # last ledger at which the transaction may apply
