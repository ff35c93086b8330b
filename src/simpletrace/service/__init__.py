"""HTTP service layer: ASGI middleware and forwarding proxy."""

from simpletrace.service.middleware import (
    ContextVarsLogSink,
    ScopeHeaders,
    TraceparentMiddleware,
)
from simpletrace.service.proxy import create_app, forward_request

__all__ = [
    "TraceparentMiddleware",
    "ScopeHeaders",
    "ContextVarsLogSink",
    "create_app",
    "forward_request",
]
