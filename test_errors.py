"""
test_errors.py

Tests for the trace error taxonomy and the Result wrapper.

Validates:
- Messages carry the error code and the offending ids
- Suggestions are rendered by format_full()
- Result never raises until unwrap() is called
"""

import pytest

from causal_trace.errors import (
    CycleDetectedError,
    EventNotFoundError,
    InvalidMatchStrategyError,
    MissingReferenceError,
    TraceError,
)
from causal_trace.result import Result


class TestTraceError:
    """Test base error formatting."""

    def test_format(self):
        error = TraceError("Something broke", error_code="R999")
        assert error.format() == "[R999] Something broke"
        assert str(error) == "[R999] Something broke"

    def test_default_code(self):
        assert TraceError("x").error_code == "R000"

    def test_format_full_single_suggestion(self):
        error = TraceError("Bad", suggestions=["Try again"])
        full = error.format_full()
        assert "Error R000" in full
        assert "Suggestion: Try again" in full

    def test_format_full_many_suggestions(self):
        error = TraceError("Bad", suggestions=["One", "Two"])
        full = error.format_full()
        assert "Suggestions:" in full
        assert "    - One" in full
        assert "    - Two" in full

    def test_format_full_without_suggestions(self):
        assert "Suggestion" not in TraceError("Bad").format_full()


class TestSpecificErrors:
    """Test each error carries its identifying fields."""

    def test_event_not_found(self):
        error = EventNotFoundError("e7", chain_id="c1")
        assert error.error_code == "R001"
        assert "'e7'" in error.message
        assert "'c1'" in error.message
        assert isinstance(error, TraceError)

    def test_event_not_found_without_chain(self):
        assert EventNotFoundError("e7").message == "Event 'e7' not found"

    def test_missing_reference(self):
        error = MissingReferenceError("parent", "ghost", event_id="child")
        assert error.error_code == "R002"
        assert error.message == "Missing parent reference 'ghost' on event 'child'"
        assert len(error.suggestions) == 2

    def test_cycle(self):
        error = CycleDetectedError(["a", "b"])
        assert error.cycle == ("a", "b")
        assert error.node == "a"
        assert error.message == "Circular reference detected: a -> b -> a"

    def test_self_cycle_message(self):
        assert CycleDetectedError(["a"]).message.endswith("a -> a")

    def test_invalid_match_strategy(self):
        error = InvalidMatchStrategyError("fuzzy", ("id", "content"))
        assert error.error_code == "R004"
        assert error.value == "fuzzy"
        assert "id, content" in error.format_full()

    def test_errors_are_raisable(self):
        with pytest.raises(TraceError):
            raise EventNotFoundError("x")


class TestResult:
    """Test Result success/failure behaviour."""

    def test_success(self):
        result = Result.success(42)
        assert result.ok
        assert bool(result)
        assert result.unwrap() == 42
        assert result.unwrap_or(0) == 42
        assert result.error is None

    def test_success_with_none_value(self):
        result = Result.success(None)
        assert result.ok
        assert result.unwrap() is None

    def test_failure(self):
        error = EventNotFoundError("x")
        result = Result.failure(error)
        assert not result.ok
        assert not result
        assert result.error is error
        assert result.unwrap_or("default") == "default"

    def test_unwrap_raises_carried_error(self):
        error = EventNotFoundError("x")
        with pytest.raises(EventNotFoundError) as info:
            Result.failure(error).unwrap()
        assert info.value is error

    def test_repr(self):
        assert repr(Result.success(1)) == "Result(value=1)"
        assert "R001" in repr(Result.failure(EventNotFoundError("x")))

    def test_immutable(self):
        result = Result.success(1)
        with pytest.raises(Exception):
            result.value = 2
