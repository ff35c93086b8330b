"""W3C Trace Context engine.

This module provides:
- traceparent header parsing and building
- Trace and span ID generation
- Log field vocabularies for common logging backends
- RequestTraceCoordinator, the per-request entry point
"""

from simpletrace.tracecontext.coordinator import (
    HeaderCarrier,
    LogFieldSink,
    RequestTraceCoordinator,
)
from simpletrace.tracecontext.ids import generate_span_id, generate_trace_id
from simpletrace.tracecontext.models import EngineConfig
from simpletrace.tracecontext.trace import TraceContext
from simpletrace.tracecontext.traceparent import (
    DEFAULT_FLAGS,
    TRACEPARENT_HEADER,
    ParsedTraceparent,
    build_traceparent,
    decode_sampled,
    default_flags_sampled,
    parse_traceparent,
)
from simpletrace.tracecontext.vocabulary import (
    FIELD_NAMES,
    LogField,
    OutputVocabulary,
    map_fields,
    resolve_vocabulary,
)

__all__ = [
    # Entry point
    "RequestTraceCoordinator",
    "HeaderCarrier",
    "LogFieldSink",
    "EngineConfig",
    # Values
    "TraceContext",
    "ParsedTraceparent",
    # Header codec
    "TRACEPARENT_HEADER",
    "DEFAULT_FLAGS",
    "parse_traceparent",
    "build_traceparent",
    "decode_sampled",
    "default_flags_sampled",
    # Identifiers
    "generate_trace_id",
    "generate_span_id",
    # Vocabularies
    "OutputVocabulary",
    "FIELD_NAMES",
    "LogField",
    "map_fields",
    "resolve_vocabulary",
]
