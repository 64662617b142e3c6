"""Tests 20-25: Retrying launch invoker."""

from __future__ import annotations

from batch_launchpad.interfaces.launch import CreateResponse
from batch_launchpad.launch.client import LaunchServiceError
from batch_launchpad.launch.invoker import RetryingLaunchInvoker
from batch_launchpad.models.batch import LaunchStatus
from batch_launchpad.models.config import LaunchConfig

from tests.factories import make_metadata, make_slot
from tests.mocks import MockCapability


def _invoker(capability, **overrides) -> RetryingLaunchInvoker:
    cfg = dict(timeout=1.0, retries=2, retry_delay=0.0)
    cfg.update(overrides)
    return RetryingLaunchInvoker(capability, LaunchConfig(**cfg))


# ── Test 20: First attempt succeeds ───────────────────────────────


async def test_success_short_circuits():
    capability = MockCapability()
    invoker = _invoker(capability)

    outcome = await invoker.launch(make_slot(), make_metadata())

    assert outcome.status is LaunchStatus.SUCCEEDED
    assert outcome.external_url == "https://launch.example/token/ok"
    assert outcome.attempts == 1
    assert capability.calls == [0]


# ── Test 21: Refused every time ───────────────────────────────────


async def test_refusal_exhausts_retries():
    capability = MockCapability([CreateResponse(success=False, error="symbol taken")])
    invoker = _invoker(capability, retries=3)

    outcome = await invoker.launch(make_slot(), make_metadata())

    assert outcome.status is LaunchStatus.FAILED
    assert outcome.reason == "symbol taken"
    assert outcome.attempts == 3
    assert len(capability.calls) == 3


async def test_success_without_url_uses_explorer_template():
    capability = MockCapability([CreateResponse(success=True, external_url=None)] * 2)
    invoker = _invoker(capability)
    slot, metadata = make_slot(), make_metadata()

    outcome = await invoker.launch(slot, metadata)

    assert outcome.status is LaunchStatus.SUCCEEDED
    assert outcome.external_url == (
        f"https://stellar.expert/explorer/public/asset/{metadata.symbol}-{slot.asset.public_key}"
    )
    assert outcome.attempts == 1
    assert len(capability.calls) == 1


async def test_success_without_url_or_template_uses_asset_key():
    capability = MockCapability([CreateResponse(success=True, external_url=None)] * 2)
    invoker = _invoker(capability, token_url_template="")
    slot = make_slot()

    outcome = await invoker.launch(slot, make_metadata())

    assert outcome.status is LaunchStatus.SUCCEEDED
    assert outcome.external_url == slot.asset.public_key
    assert len(capability.calls) == 1


# ── Test 22: Transient error then success ─────────────────────────


async def test_transient_error_then_success():
    capability = MockCapability([
        LaunchServiceError("launch service HTTP 502"),
        CreateResponse(success=True, external_url="https://launch.example/token/2nd"),
    ])
    invoker = _invoker(capability)

    outcome = await invoker.launch(make_slot(), make_metadata())

    assert outcome.status is LaunchStatus.SUCCEEDED
    assert outcome.external_url == "https://launch.example/token/2nd"
    assert outcome.attempts == 2


# ── Test 23: Time box ─────────────────────────────────────────────


async def test_timeout_is_reported():
    capability = MockCapability(delay=0.5)
    invoker = _invoker(capability, timeout=0.05)

    outcome = await invoker.launch(make_slot(), make_metadata())

    assert outcome.status is LaunchStatus.FAILED
    assert outcome.reason == "timeout"
    assert outcome.attempts == 2


# ── Test 24: Launch balance pre-check ─────────────────────────────


async def test_low_balance_skips_launch():
    capability = MockCapability()
    invoker = _invoker(capability, min_launch_balance=20_000_000)
    slot = make_slot()
    slot.confirmed_balance = 10_000_000

    outcome = await invoker.launch(slot, make_metadata())

    assert outcome.status is LaunchStatus.FAILED
    assert outcome.reason == "insufficient_balance"
    assert outcome.attempts == 0
    assert capability.calls == []


async def test_unknown_balance_still_launches():
    capability = MockCapability()
    invoker = _invoker(capability, min_launch_balance=20_000_000)

    outcome = await invoker.launch(make_slot(), make_metadata())

    assert outcome.status is LaunchStatus.SUCCEEDED
