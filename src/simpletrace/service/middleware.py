"""ASGI middleware binding the trace context engine to the request pipeline.

For every HTTP request the middleware:
- runs the RequestTraceCoordinator against the request headers
- binds the resulting trace fields into structlog's contextvars, so every log
  event emitted while handling the request carries them
- exposes the fields as ``request.state.trace_fields``
- replaces the ``traceparent`` header seen by the downstream app
- emits one access log event when the response has been sent

Non-HTTP scopes (lifespan, websocket) pass through untouched.
"""

import time
from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any

import structlog

from simpletrace.telemetry.events import HTTP_REQUEST_COMPLETED, HTTP_REQUEST_FAILED
from simpletrace.tracecontext import EngineConfig, LogField, RequestTraceCoordinator

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

log = structlog.get_logger(__name__)


class ScopeHeaders:
    """HeaderCarrier over the raw header list of an ASGI scope.

    Header names are matched case-insensitively. Setting a header replaces
    every existing occurrence with a single value.
    """

    def __init__(self, scope: Scope) -> None:
        self.scope = scope

    def get_header(self, name: str) -> str | None:
        key = name.lower().encode("latin-1")
        for raw_name, raw_value in self.scope.get("headers") or []:
            if raw_name.lower() == key:
                return raw_value.decode("latin-1")
        return None

    def set_header(self, name: str, value: str) -> None:
        key = name.lower().encode("latin-1")
        headers = [
            (raw_name, raw_value)
            for raw_name, raw_value in self.scope.get("headers") or []
            if raw_name.lower() != key
        ]
        headers.append((key, value.encode("latin-1")))
        self.scope["headers"] = headers


class ContextVarsLogSink:
    """LogFieldSink binding trace fields into structlog contextvars.

    The bindings are undone by ``reset()`` once the request has completed.
    """

    def __init__(self, scope: Scope) -> None:
        self.scope = scope
        self.fields: list[LogField] = []
        self._tokens: dict[str, Any] = {}

    def add_fields(self, fields: list[LogField]) -> None:
        self.fields.extend(fields)
        self._tokens.update(structlog.contextvars.bind_contextvars(**dict(fields)))
        state = self.scope.setdefault("state", {})
        state["trace_fields"] = dict(self.fields)

    def reset(self) -> None:
        if self._tokens:
            structlog.contextvars.reset_contextvars(**self._tokens)
            self._tokens = {}


class TraceparentMiddleware:
    """Propagate W3C trace context and attach it to request logs.

    Args:
        app: Downstream ASGI application.
        config: Engine configuration. Ignored if ``coordinator`` is given.
        coordinator: Pre-built coordinator to use.
        access_log: Emit an ``http_request_completed`` event per request.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: EngineConfig | None = None,
        coordinator: RequestTraceCoordinator | None = None,
        access_log: bool = True,
    ) -> None:
        self.app = app
        self.coordinator = coordinator or RequestTraceCoordinator(config)
        self.access_log = access_log

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code: int | None = None

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        sink = ContextVarsLogSink(scope)
        try:
            await self.coordinator.handle(
                ScopeHeaders(scope),
                sink,
                lambda: self.app(scope, receive, send_wrapper),
            )
        except Exception:
            log.exception(
                HTTP_REQUEST_FAILED,
                method=scope.get("method"),
                path=scope.get("path"),
            )
            raise
        finally:
            if self.access_log:
                log.info(
                    HTTP_REQUEST_COMPLETED,
                    method=scope.get("method"),
                    path=scope.get("path"),
                    status=status_code,
                    duration_ms=round((time.perf_counter() - start) * 1000, 3),
                    **dict(sink.fields),
                )
            sink.reset()
