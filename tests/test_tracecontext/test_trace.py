"""Tests for TraceContext."""

from dataclasses import FrozenInstanceError

import pytest

from simpletrace.tracecontext.trace import TraceContext
from simpletrace.tracecontext.traceparent import ParsedTraceparent


class TestTraceContext:
    """Test TraceContext functionality."""

    def test_new_trace_creates_unique_trace_id(self) -> None:
        """Test that new_trace creates a context with unique trace_id."""
        ctx1 = TraceContext.new_trace()
        ctx2 = TraceContext.new_trace()

        assert ctx1.trace_id != ctx2.trace_id
        assert len(ctx1.trace_id) == 32
        assert len(ctx1.span_id) == 16

    def test_new_trace_is_sampled_without_parent(self) -> None:
        """Test that a new trace is sampled and has no parent span."""
        ctx = TraceContext.new_trace()

        assert ctx.flags == "01"
        assert ctx.sampled is True
        assert ctx.parent_span_id is None

    def test_continue_trace_adopts_incoming_values(self) -> None:
        """Test that continuing keeps trace ID and flags and makes the caller the parent."""
        parsed = ParsedTraceparent(
            trace_id="4bf92f3577b34da6a3ce929d0e0e4736",
            parent_span_id="00f067aa0ba902b7",
            flags="00",
        )

        ctx = TraceContext.continue_trace(parsed)

        assert ctx.trace_id == parsed.trace_id
        assert ctx.parent_span_id == parsed.parent_span_id
        assert ctx.flags == "00"
        assert ctx.sampled is False
        assert ctx.span_id != parsed.parent_span_id
        assert len(ctx.span_id) == 16

    def test_continue_trace_generates_new_span_each_time(self) -> None:
        """Test that every hop gets its own span ID."""
        parsed = ParsedTraceparent("4bf92f3577b34da6a3ce929d0e0e4736", "00f067aa0ba902b7", "01")

        first = TraceContext.continue_trace(parsed)
        second = TraceContext.continue_trace(parsed)

        assert first.span_id != second.span_id

    def test_traceparent_property(self) -> None:
        """Test the outgoing header built from the context."""
        ctx = TraceContext(
            trace_id="4bf92f3577b34da6a3ce929d0e0e4736",
            span_id="b7ad6b7169203331",
            flags="01",
            sampled=True,
            parent_span_id="00f067aa0ba902b7",
        )

        assert ctx.traceparent == "00-4bf92f3577b34da6a3ce929d0e0e4736-b7ad6b7169203331-01"

    def test_trace_context_is_immutable(self) -> None:
        """Test that TraceContext is immutable (frozen dataclass)."""
        ctx = TraceContext.new_trace()

        with pytest.raises(FrozenInstanceError):
            ctx.trace_id = "new-id"  # type: ignore[misc]

        with pytest.raises(FrozenInstanceError):
            ctx.parent_span_id = "new-parent"  # type: ignore[misc]

    def test_trace_context_equality(self) -> None:
        """Test TraceContext equality comparison."""
        ctx1 = TraceContext(trace_id="a" * 32, span_id="b" * 16, flags="01", sampled=True)
        ctx2 = TraceContext(trace_id="a" * 32, span_id="b" * 16, flags="01", sampled=True)
        ctx3 = TraceContext(trace_id="c" * 32, span_id="b" * 16, flags="01", sampled=True)

        assert ctx1 == ctx2
        assert ctx1 != ctx3
