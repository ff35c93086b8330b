"""Per-request trace coordination.

The coordinator is the single entry point of the trace context engine. For
each request it reads the incoming ``traceparent`` header, continues or
starts a trace, maps the result to log fields, hands those fields to the
request's log sink, rewrites the header for the next hop and then continues
processing.
"""

from collections.abc import Callable
from typing import Protocol, TypeVar

import structlog

from simpletrace.telemetry.events import TRACE_CONTINUED, TRACE_STARTED, TRACEPARENT_INVALID
from simpletrace.tracecontext.models import EngineConfig
from simpletrace.tracecontext.trace import TraceContext
from simpletrace.tracecontext.traceparent import TRACEPARENT_HEADER, parse_traceparent
from simpletrace.tracecontext.vocabulary import LogField, map_fields

log = structlog.get_logger(__name__)

T = TypeVar("T")


class HeaderCarrier(Protocol):
    """Request object exposing a single named header for read and write."""

    def get_header(self, name: str) -> str | None:
        """Return the header value, or None if absent."""
        ...

    def set_header(self, name: str, value: str) -> None:
        """Replace the header value."""
        ...


class LogFieldSink(Protocol):
    """Per-request structured log context."""

    def add_fields(self, fields: list[LogField]) -> None:
        """Attach ordered ``(name, value)`` pairs to the request's log record."""
        ...


class RequestTraceCoordinator:
    """Derive trace context for requests and propagate it downstream.

    The coordinator holds only its immutable configuration, so a single
    instance may serve any number of concurrent requests.

    Args:
        config: Engine configuration (vocabulary, project ID, strictness).
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()

    def derive(self, header_value: str | None) -> TraceContext:
        """Continue the incoming trace or start a new one.

        Args:
            header_value: Incoming ``traceparent`` value, or None if absent.

        Returns:
            Trace context for this hop, with a freshly generated span ID.
        """
        parsed = parse_traceparent(header_value, strict=self.config.strict)
        if parsed is not None:
            ctx = TraceContext.continue_trace(parsed)
            log.debug(
                TRACE_CONTINUED,
                trace_id=ctx.trace_id,
                parent_span_id=ctx.parent_span_id,
                sampled=ctx.sampled,
            )
            return ctx

        if header_value:
            log.debug(TRACEPARENT_INVALID, traceparent=header_value, strict=self.config.strict)

        ctx = TraceContext.new_trace()
        log.debug(TRACE_STARTED, trace_id=ctx.trace_id)
        return ctx

    def fields_for(self, ctx: TraceContext) -> list[LogField]:
        """Map a trace context to log fields using the configured vocabulary."""
        return map_fields(ctx, self.config.vocabulary, self.config.project_id)

    def handle(
        self,
        request: HeaderCarrier,
        sink: LogFieldSink,
        call_next: Callable[[], T],
    ) -> T:
        """Run the full trace pipeline for one request.

        The log fields and the rewritten header are applied only once the
        trace context is fully derived. ``call_next`` is invoked exactly once,
        after both mutations.

        Args:
            request: Request whose ``traceparent`` header is read and replaced.
            sink: Log context receiving the trace fields.
            call_next: Continues request processing.

        Returns:
            Whatever ``call_next`` returns.
        """
        ctx = self.derive(request.get_header(TRACEPARENT_HEADER))
        fields = self.fields_for(ctx)

        sink.add_fields(fields)
        request.set_header(TRACEPARENT_HEADER, ctx.traceparent)

        return call_next()
