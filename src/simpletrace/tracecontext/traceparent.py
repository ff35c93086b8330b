"""W3C ``traceparent`` header codec.

Wire format::

    traceparent: 00-<32-hex trace-id>-<16-hex parent-id>-<2-hex flags>

Parsing is permissive by default: a header is accepted when it has exactly
four dash-separated fields and the version field is ``00``. The remaining
fields are taken as-is. Strict mode additionally checks the width and
character class of every field and rejects all-zero identifiers.
"""

import re
from dataclasses import dataclass

TRACEPARENT_HEADER = "traceparent"
SUPPORTED_VERSION = "00"
SAMPLED_FLAG = 0x01
DEFAULT_FLAGS = "01"

_TRACE_ID_RE = re.compile(r"[0-9a-f]{32}")
_SPAN_ID_RE = re.compile(r"[0-9a-f]{16}")
_FLAGS_RE = re.compile(r"[0-9a-f]{2}")
_FLAG_BYTE_RE = re.compile(r"[0-9a-fA-F]{2}")


@dataclass(frozen=True)
class ParsedTraceparent:
    """Fields extracted from a valid incoming ``traceparent`` header.

    Attributes:
        trace_id: Trace ID as received.
        parent_span_id: Span ID of the caller, as received.
        flags: Trace flags as received (normally 2 hex characters).
    """

    trace_id: str
    parent_span_id: str
    flags: str


def _is_strictly_valid(trace_id: str, parent_span_id: str, flags: str) -> bool:
    if not _TRACE_ID_RE.fullmatch(trace_id) or set(trace_id) == {"0"}:
        return False
    if not _SPAN_ID_RE.fullmatch(parent_span_id) or set(parent_span_id) == {"0"}:
        return False
    return bool(_FLAGS_RE.fullmatch(flags))


def parse_traceparent(header_value: str | None, strict: bool = False) -> ParsedTraceparent | None:
    """Decompose a ``traceparent`` header value.

    Args:
        header_value: Raw header value, or None if the header is absent.
        strict: Also validate field widths, hex encoding and non-zero IDs.

    Returns:
        The parsed fields, or None if the header is absent or malformed.
    """
    if not header_value:
        return None

    parts = header_value.split("-")
    if len(parts) != 4 or parts[0] != SUPPORTED_VERSION:
        return None

    _, trace_id, parent_span_id, flags = parts
    if strict and not _is_strictly_valid(trace_id, parent_span_id, flags):
        return None

    return ParsedTraceparent(trace_id=trace_id, parent_span_id=parent_span_id, flags=flags)


def build_traceparent(trace_id: str, span_id: str, flags: str) -> str:
    """Compose a ``traceparent`` header value for the next hop."""
    return f"{SUPPORTED_VERSION}-{trace_id}-{span_id}-{flags}"


def decode_sampled(flags: str) -> bool:
    """Extract the sampled bit from a 2-character hex flags field.

    Args:
        flags: Trace flags as a hex string.

    Returns:
        True if bit 0 is set. False if ``flags`` is not exactly one
        hex-encoded byte.
    """
    if not _FLAG_BYTE_RE.fullmatch(flags):
        return False
    flag_byte = int(flags, 16)
    return (flag_byte & SAMPLED_FLAG) == SAMPLED_FLAG


def default_flags_sampled() -> str:
    """Flags used whenever a new trace is started (sampled)."""
    return DEFAULT_FLAGS
