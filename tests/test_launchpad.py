"""Tests 63-66: Process-level wiring."""

from __future__ import annotations

import asyncio
import signal
import sys

import pytest

from batch_launchpad.errors import InvalidRequest
from batch_launchpad.launchpad import Launchpad, run_launch
from batch_launchpad.models.batch import BatchState
from batch_launchpad.orchestrator import BatchOrchestrator

from tests.conftest import TEST_PUBLIC, make_test_config
from tests.factories import make_request


async def test_started_launchpad_builds_orchestrators():
    async with Launchpad(make_test_config()) as pad:
        first = pad.new_orchestrator()
        second = pad.new_orchestrator()

        assert isinstance(first, BatchOrchestrator)
        assert first is not second
        assert pad.signer.public_key == TEST_PUBLIC
        assert await pad.store.list_recent() == []


def test_orchestrator_requires_start():
    pad = Launchpad(make_test_config())

    with pytest.raises(AssertionError):
        pad.new_orchestrator()


async def test_orchestrator_requires_secret():
    async with Launchpad(make_test_config(funding_secret="")) as pad:
        assert pad.signer is None
        with pytest.raises(RuntimeError):
            pad.new_orchestrator()


# ── Test 66: Signal handlers are scoped to one run ────────────────


@pytest.mark.skipif(sys.platform == "win32", reason="no loop signal handlers on Windows")
async def test_run_launch_removes_signal_handlers():
    outcome = await run_launch(make_test_config(), make_request(requested_count=0))

    assert outcome.state is BatchState.ABORTED
    assert isinstance(outcome.error, InvalidRequest)

    loop = asyncio.get_running_loop()
    assert loop.remove_signal_handler(signal.SIGINT) is False
    assert loop.remove_signal_handler(signal.SIGTERM) is False
