"""Unit tests for BatchState transitions and response body extraction."""

from types import SimpleNamespace

import pytest

from src.orchestrator.state import BatchSnapshot, BatchState, extract_body
from src.transport.http_transport import TransportResponse


@pytest.fixture
def state():
    """Create a fresh BatchState instance for each test."""
    return BatchState()


class TestExtractBody:
    """Tests for extract_body."""

    def test_transport_response(self):
        """Test extracting the body of a TransportResponse."""
        assert extract_body(TransportResponse(status_code=200, body={"id": 1})) == {"id": 1}

    def test_mapping_with_body_key(self):
        """Test extracting the body key of a mapping."""
        assert extract_body({"body": "payload", "data": "ignored"}) == "payload"

    def test_mapping_with_data_key(self):
        """Test falling back to the data key of a mapping."""
        assert extract_body({"data": "success-foo"}) == "success-foo"

    def test_object_with_data_attribute(self):
        """Test falling back to a data attribute."""
        assert extract_body(SimpleNamespace(data=[1, 2])) == [1, 2]

    def test_no_payload(self):
        """Test that responses without payload yield None."""
        assert extract_body(object()) is None


class TestStartExecution:
    """Tests for starting a generation."""

    def test_initial_state(self, state):
        """Test the state before any execution."""
        assert state.in_flight is False
        assert state.execution_sequence == 0
        assert state.snapshot() == BatchSnapshot()

    def test_start_marks_in_flight_and_clears(self, state):
        """Test that starting clears previous results and increments the sequence."""
        generation = state.start_execution(["a"])
        state.record_failure(generation, 0, RuntimeError("boom"))
        state.finalize(generation)

        next_generation = state.start_execution(["b", "c"])

        assert next_generation == generation + 1
        assert state.in_flight is True
        assert state.current_inputs == ("b", "c")
        assert state.failed == ()
        assert state.errors == ()

    def test_inputs_are_frozen(self, state):
        """Test that later changes to the caller's list do not leak in."""
        inputs = ["a", "b"]
        state.start_execution(inputs)
        inputs.append("c")

        assert state.current_inputs == ("a", "b")


class TestRecordAndFinalize:
    """Tests for recording outcomes and publishing them."""

    def test_last_settlement_reports_completion(self, state):
        """Test that only the final settlement completes the generation."""
        generation = state.start_execution(["a", "b"])

        assert state.record_success(generation, 1, {"body": "B"}) is False
        assert state.record_failure(generation, 0, ValueError("A")) is True

    def test_results_not_visible_before_finalize(self, state):
        """Test that recorded outcomes are buffered until finalize."""
        generation = state.start_execution(["a", "b"])
        state.record_success(generation, 0, {"body": "A"})

        assert state.succeeded == ()
        assert state.snapshot().in_flight is True

    def test_finalize_orders_by_input_position(self, state):
        """Test that out-of-order settlements publish in input order."""
        generation = state.start_execution(["a", "b", "c", "d"])
        error_d = RuntimeError("d")
        error_b = RuntimeError("b")

        state.record_failure(generation, 3, error_d)
        state.record_success(generation, 2, {"body": "C"})
        state.record_failure(generation, 1, error_b)
        state.record_success(generation, 0, {"body": "A"})

        assert state.finalize(generation) is True
        assert state.in_flight is False
        assert state.succeeded == ("a", "c")
        assert state.data == ("A", "C")
        assert state.responses == ({"body": "A"}, {"body": "C"})
        assert state.failed == ("b", "d")
        assert state.errors == (error_b, error_d)

    def test_stale_settlement_ignored(self, state):
        """Test that outcomes of a superseded generation are dropped."""
        old = state.start_execution(["a"])
        new = state.start_execution(["b"])

        assert state.record_success(old, 0, {"body": "A"}) is False
        assert state.finalize(old) is False

        state.record_success(new, 0, {"body": "B"})
        state.finalize(new)
        assert state.succeeded == ("b",)

    def test_finalize_with_pending_requests_fails(self, state):
        """Test that a generation cannot be published while requests are pending."""
        generation = state.start_execution(["a", "b"])
        state.record_success(generation, 0, {"body": "A"})

        with pytest.raises(RuntimeError, match="1/2 settled"):
            state.finalize(generation)

    def test_double_settlement_fails(self, state):
        """Test that a request cannot settle twice."""
        generation = state.start_execution(["a", "b"])
        state.record_success(generation, 0, {"body": "A"})

        with pytest.raises(RuntimeError, match="settled twice"):
            state.record_failure(generation, 0, ValueError("again"))

    def test_empty_generation_finalizes(self, state):
        """Test that an empty generation can be published immediately."""
        generation = state.start_execution([])

        assert state.finalize(generation) is True
        assert state.in_flight is False
        assert state.succeeded == ()

    def test_snapshot_carries_retry(self, state):
        """Test that the retry capability is attached to snapshots."""

        def retry():
            return None

        assert state.snapshot(retry=retry).retry is retry
