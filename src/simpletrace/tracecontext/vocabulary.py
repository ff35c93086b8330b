"""Log field vocabularies for trace context.

Each vocabulary maps the four logical trace values (trace ID, span ID,
sampled flag, parent span ID) to the field names a particular logging or
tracing backend expects.
"""

from dataclasses import dataclass
from enum import Enum

from simpletrace.tracecontext.trace import TraceContext

LogFieldValue = str | bool
LogField = tuple[str, LogFieldValue]


class OutputVocabulary(str, Enum):
    """Supported log field vocabularies."""

    OTEL = "otel"
    STACKDRIVER = "stackdriver"
    TEMPO = "tempo"
    ECS = "ecs"
    DATADOG = "datadog"

    @classmethod
    def _missing_(cls, value: object) -> "OutputVocabulary | None":
        if isinstance(value, str):
            return _ALIASES.get(value)
        return None


_ALIASES: dict[str, OutputVocabulary] = {
    "otel": OutputVocabulary.OTEL,
    "stackdriver": OutputVocabulary.STACKDRIVER,
    "gcp": OutputVocabulary.STACKDRIVER,
    "tempo": OutputVocabulary.TEMPO,
    "ecs": OutputVocabulary.ECS,
    "datadog": OutputVocabulary.DATADOG,
    "dd": OutputVocabulary.DATADOG,
}

VOCABULARY_TOKENS: tuple[str, ...] = tuple(_ALIASES)


@dataclass(frozen=True)
class FieldNames:
    """Field names a vocabulary uses for the logical trace values."""

    trace_id: str
    span_id: str
    sampled: str
    parent_span_id: str


FIELD_NAMES: dict[OutputVocabulary, FieldNames] = {
    # OpenTelemetry log data model
    OutputVocabulary.OTEL: FieldNames(
        trace_id="trace_id",
        span_id="span_id",
        sampled="trace_sampled",
        parent_span_id="parent_span_id",
    ),
    # Google Cloud Logging special fields
    OutputVocabulary.STACKDRIVER: FieldNames(
        trace_id="logging.googleapis.com/trace",
        span_id="logging.googleapis.com/spanId",
        sampled="logging.googleapis.com/trace_sampled",
        parent_span_id="parent_span_id",
    ),
    # Grafana Tempo (camelCase)
    OutputVocabulary.TEMPO: FieldNames(
        trace_id="traceID",
        span_id="spanID",
        sampled="traceSampled",
        parent_span_id="parentSpanID",
    ),
    # Elastic Common Schema
    OutputVocabulary.ECS: FieldNames(
        trace_id="trace.id",
        span_id="span.id",
        sampled="trace.sampled",
        parent_span_id="span.parent_id",
    ),
    OutputVocabulary.DATADOG: FieldNames(
        trace_id="dd.trace_id",
        span_id="dd.span_id",
        sampled="dd.sampled",
        parent_span_id="dd.parent_id",
    ),
}


def resolve_vocabulary(token: str | OutputVocabulary | None) -> OutputVocabulary:
    """Resolve a vocabulary token, falling back to OpenTelemetry.

    Unknown or empty tokens never raise here; configuration loading is where
    unknown tokens are rejected.

    Args:
        token: Vocabulary name or alias, or None. Names are case-sensitive.

    Returns:
        The matching vocabulary, or ``OutputVocabulary.OTEL``.
    """
    if isinstance(token, OutputVocabulary):
        return token
    if not token:
        return OutputVocabulary.OTEL
    return _ALIASES.get(token, OutputVocabulary.OTEL)


def _cloud_logging_trace(trace_id: str, project_id: str) -> str:
    if project_id:
        return f"projects/{project_id}/traces/{trace_id}"
    return trace_id


def map_fields(
    ctx: TraceContext,
    vocabulary: str | OutputVocabulary | None,
    project_id: str = "",
) -> list[LogField]:
    """Map a trace context to ordered log fields.

    Args:
        ctx: Fully populated trace context for the request.
        vocabulary: Vocabulary to emit (unknown values fall back to OpenTelemetry).
        project_id: Cloud project ID used to qualify the trace for Cloud Logging.

    Returns:
        List of ``(name, value)`` pairs: trace ID, span ID, sampled flag and,
        only when the trace was continued, the parent span ID.
    """
    resolved = resolve_vocabulary(vocabulary)
    names = FIELD_NAMES[resolved]

    trace_value = ctx.trace_id
    if resolved is OutputVocabulary.STACKDRIVER:
        trace_value = _cloud_logging_trace(ctx.trace_id, project_id)

    fields: list[LogField] = [
        (names.trace_id, trace_value),
        (names.span_id, ctx.span_id),
        (names.sampled, ctx.sampled),
    ]
    if ctx.parent_span_id:
        fields.append((names.parent_span_id, ctx.parent_span_id))
    return fields
