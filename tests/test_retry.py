"""Tests for selective retry of failed batch inputs.

This module tests the retry coordinator including:
- Derivation of the retry capability from failed inputs
- Re-execution of exactly the failed subset
- Multi-round convergence
- Reuse of the original request factory and overrides
"""

from unittest.mock import Mock

import pytest

from src.orchestrator.batch import BatchOrchestrator
from src.orchestrator.methods import parallel_patch
from src.orchestrator.retry import derive_retry
from tests.fakes import called_args, make_transport, request_factory


class TestDeriveRetry:
    """Test cases for derive_retry."""

    def test_absent_when_nothing_failed(self):
        """Test that no capability exists for an empty failed set."""
        execute = Mock()

        assert derive_retry([], execute) is None
        assert derive_retry((), execute) is None
        execute.assert_not_called()

    def test_executes_failed_inputs(self):
        """Test that the capability re-executes exactly the failed inputs."""
        execute = Mock(return_value="future")

        retry = derive_retry(["err1", "err2"], execute)

        assert retry() == "future"
        execute.assert_called_once_with(("err1", "err2"))

    def test_failed_inputs_captured(self):
        """Test that later changes to the source list do not affect the capability."""
        execute = Mock()
        failed = ["err1"]

        retry = derive_retry(failed, execute)
        failed.append("err2")
        retry()

        execute.assert_called_once_with(("err1",))


class TestBatchRetry:
    """Test cases for retry through the BatchOrchestrator."""

    def test_absent_before_exec(self, transport):
        """Test that retry is None before anything was executed."""
        batch = BatchOrchestrator(request_factory, transport=transport)

        assert batch.retry is None

    @pytest.mark.asyncio
    async def test_absent_after_full_success(self, transport):
        """Test that retry stays None when every request succeeded."""
        batch = BatchOrchestrator(request_factory, transport=transport)

        snapshot = await batch.exec(["foo", "bar"])

        assert snapshot.succeeded == ("foo", "bar")
        assert snapshot.retry is None
        assert batch.retry is None

    @pytest.mark.asyncio
    async def test_available_after_failure(self, transport):
        """Test that retry becomes callable once a request failed."""
        batch = BatchOrchestrator(request_factory, transport=transport)

        snapshot = await batch.exec(["err"])

        assert len(snapshot.failed) == 1
        assert callable(snapshot.retry)
        assert callable(batch.retry)

    @pytest.mark.asyncio
    async def test_absent_while_in_flight(self, transport):
        """Test that retry disappears while a new generation runs."""
        batch = BatchOrchestrator(request_factory, transport=transport)
        await batch.exec(["err"])

        task = batch.exec(["foo"])

        assert batch.retry is None
        await task

    @pytest.mark.asyncio
    async def test_retries_only_failed_requests(self, transport):
        """Test that retry sends requests for the failed inputs only."""
        batch = BatchOrchestrator(request_factory, transport=transport)
        await batch.exec(["foo", "err1", "err2", "bar"])

        transport.reset_mock()
        await batch.retry()

        assert transport.call_count == 2
        assert called_args(transport) == ["err1", "err2"]

    @pytest.mark.asyncio
    async def test_retry_succeeds_and_capability_disappears(self):
        """Test that a fully successful retry leaves no retry capability."""
        attempts = {}

        def fails_first_time(arg):
            attempts[arg] = attempts.get(arg, 0) + 1
            return str(arg).startswith("err") and attempts[arg] == 1

        transport = make_transport(should_fail=fails_first_time)
        batch = BatchOrchestrator(request_factory, transport=transport)
        snapshot = await batch.exec(["foo", "bar", "err1", "err2", "baz"])
        assert snapshot.failed == ("err1", "err2")

        transport.reset_mock()
        snapshot = await snapshot.retry()

        assert called_args(transport) == ["err1", "err2"]
        assert snapshot.succeeded == ("err1", "err2")
        assert snapshot.failed == ()
        assert snapshot.retry is None
        assert batch.retry is None

    @pytest.mark.asyncio
    async def test_failing_once_transport(self):
        """Test retry with a transport whose very first call fails."""
        calls = {"count": 0}

        def first_call_fails(_arg):
            calls["count"] += 1
            return calls["count"] == 1

        transport = make_transport(should_fail=first_call_fails)
        batch = BatchOrchestrator(request_factory, {"method": "PATCH"}, transport=transport)
        await batch.exec(["err1", "foo"])

        transport.reset_mock()
        await batch.retry()

        assert calls["count"] == 3
        assert transport.call_count == 1
        assert batch.failed == ()
        assert batch.retry is None

    @pytest.mark.asyncio
    async def test_multi_round_convergence(self):
        """Test that each round retries exactly what failed in the previous one."""
        failures_left = {"a": 0, "b": 1, "c": 2, "d": 3}

        def fails_until_exhausted(arg):
            if failures_left[arg] > 0:
                failures_left[arg] -= 1
                return True
            return False

        transport = make_transport(should_fail=fails_until_exhausted)
        batch = BatchOrchestrator(request_factory, transport=transport)

        await batch.exec(["a", "b", "c", "d"])
        rounds = [batch.failed]
        while batch.retry is not None:
            await batch.retry()
            rounds.append(batch.failed)

        assert rounds == [("b", "c", "d"), ("c", "d"), ("d",), ()]
        assert batch.execution_sequence == 4

    @pytest.mark.asyncio
    async def test_retry_reuses_factory_and_overrides(self, transport):
        """Test that retried requests are built the same way as the originals."""
        batch = parallel_patch(request_factory, transport=transport)
        await batch.exec(["foo", "err1"])
        first_descriptor = transport.call_args_list[1].args[0]

        transport.reset_mock()
        await batch.retry()

        assert transport.call_args.args[0] == first_descriptor
        assert transport.call_args.args[0]["method"] == "PATCH"
