"""Per-request trace context.

This module holds the value derived for every request that passes through
the engine: the trace it belongs to, the span created for this hop, the
caller's span and the sampling decision.
"""

from dataclasses import dataclass

from simpletrace.tracecontext.ids import generate_span_id, generate_trace_id
from simpletrace.tracecontext.traceparent import (
    ParsedTraceparent,
    build_traceparent,
    decode_sampled,
    default_flags_sampled,
)


@dataclass(frozen=True)
class TraceContext:
    """Trace context for a single hop.

    This is a frozen dataclass: it is fully populated before any log field is
    emitted and never modified afterwards. Build one with ``new_trace()`` when
    there is no usable incoming context, or ``continue_trace()`` when there is.

    Attributes:
        trace_id: Identifier shared by every span of the trace.
        span_id: Identifier generated for this hop.
        flags: Trace flags forwarded to the next hop (hex string).
        sampled: Whether the sampled bit is set in ``flags``.
        parent_span_id: Span ID of the caller, if the trace was continued.
    """

    trace_id: str
    span_id: str
    flags: str
    sampled: bool
    parent_span_id: str | None = None

    @classmethod
    def new_trace(cls) -> "TraceContext":
        """Start a new sampled trace.

        Returns:
            A TraceContext with fresh trace and span IDs and no parent span.
        """
        return cls(
            trace_id=generate_trace_id(),
            span_id=generate_span_id(),
            flags=default_flags_sampled(),
            sampled=True,
        )

    @classmethod
    def continue_trace(cls, parsed: ParsedTraceparent) -> "TraceContext":
        """Continue the trace described by an incoming header.

        The incoming span becomes the parent; a new span ID is generated for
        this hop. Trace ID and flags are adopted unchanged.

        Args:
            parsed: Fields of a valid incoming ``traceparent`` header.

        Returns:
            A TraceContext for this hop.
        """
        return cls(
            trace_id=parsed.trace_id,
            span_id=generate_span_id(),
            flags=parsed.flags,
            sampled=decode_sampled(parsed.flags),
            parent_span_id=parsed.parent_span_id,
        )

    @property
    def traceparent(self) -> str:
        """Outgoing ``traceparent`` header value for the next hop."""
        return build_traceparent(self.trace_id, self.span_id, self.flags)
