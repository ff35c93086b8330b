"""Trace and span identifier generation.

Identifiers are drawn from the operating system CSPRNG and hex-encoded.
If the entropy source is unavailable the generators degrade to an all-zero
identifier instead of failing the request.
"""

import secrets

import structlog

from simpletrace.telemetry.events import ENTROPY_SOURCE_FAILED

log = structlog.get_logger(__name__)

TRACE_ID_BYTES = 16
SPAN_ID_BYTES = 8

INVALID_TRACE_ID = "0" * (TRACE_ID_BYTES * 2)
INVALID_SPAN_ID = "0" * (SPAN_ID_BYTES * 2)


def _random_hex(num_bytes: int, fallback: str) -> str:
    """Read ``num_bytes`` of entropy and hex-encode them.

    Args:
        num_bytes: Number of random bytes to read.
        fallback: Value returned when the random source fails.

    Returns:
        Lowercase hex string of length ``2 * num_bytes``.
    """
    try:
        return secrets.token_bytes(num_bytes).hex()
    except (OSError, NotImplementedError) as e:
        log.warning(
            ENTROPY_SOURCE_FAILED,
            num_bytes=num_bytes,
            error=str(e),
            error_type=type(e).__name__,
        )
        return fallback


def generate_trace_id() -> str:
    """Generate a 32-character hex trace ID (16 bytes)."""
    return _random_hex(TRACE_ID_BYTES, INVALID_TRACE_ID)


def generate_span_id() -> str:
    """Generate a 16-character hex span ID (8 bytes)."""
    return _random_hex(SPAN_ID_BYTES, INVALID_SPAN_ID)
