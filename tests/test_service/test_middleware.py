"""Tests for the trace context ASGI middleware."""

import logging
import os
import re
import subprocess
import sys
from typing import Any

import pytest
import structlog
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient
from structlog.testing import capture_logs

from simpletrace.service import middleware as middleware_module
from simpletrace.service.middleware import ContextVarsLogSink, ScopeHeaders, TraceparentMiddleware
from simpletrace.tracecontext import EngineConfig, OutputVocabulary

VALID_HEADER = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"


async def echo(request: Request) -> JSONResponse:
    return JSONResponse(
        {
            "traceparent": request.headers.get("traceparent"),
            "traceparent_count": len(request.headers.getlist("traceparent")),
            "trace_fields": request.state.trace_fields,
            "log_context": structlog.contextvars.get_contextvars(),
        }
    )


async def boom(request: Request) -> JSONResponse:
    raise RuntimeError("handler failed")


def build_client(config: EngineConfig | None = None) -> TestClient:
    app = Starlette(routes=[Route("/echo", echo), Route("/boom", boom)])
    return TestClient(TraceparentMiddleware(app, config=config), raise_server_exceptions=True)


class RecordingLog:
    """Stand-in for the module logger."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def info(self, event: str, **kwargs: Any) -> None:
        self.events.append((event, kwargs))

    def exception(self, event: str, **kwargs: Any) -> None:
        self.events.append((event, kwargs))


class TestScopeHeaders:
    """Test header access on raw ASGI scopes."""

    def test_get_is_case_insensitive(self) -> None:
        """Test header lookup ignores case."""
        scope = {"headers": [(b"TraceParent", VALID_HEADER.encode())]}
        assert ScopeHeaders(scope).get_header("traceparent") == VALID_HEADER

    def test_get_missing(self) -> None:
        """Test that a missing header returns None."""
        assert ScopeHeaders({"headers": []}).get_header("traceparent") is None

    def test_set_replaces_all_occurrences(self) -> None:
        """Test that setting a header leaves exactly one value."""
        scope = {
            "headers": [
                (b"traceparent", b"a"),
                (b"host", b"example.com"),
                (b"Traceparent", b"b"),
            ]
        }

        ScopeHeaders(scope).set_header("traceparent", "c")

        assert scope["headers"] == [(b"host", b"example.com"), (b"traceparent", b"c")]


class TestContextVarsLogSink:
    """Test binding trace fields into the log context."""

    def test_add_and_reset(self) -> None:
        """Test that fields are bound, stored on request state and unbound on reset."""
        scope: dict[str, Any] = {}
        sink = ContextVarsLogSink(scope)

        sink.add_fields([("trace_id", "abc"), ("trace_sampled", True)])

        assert structlog.contextvars.get_contextvars() == {"trace_id": "abc", "trace_sampled": True}
        assert scope["state"]["trace_fields"] == {"trace_id": "abc", "trace_sampled": True}

        sink.reset()

        assert structlog.contextvars.get_contextvars() == {}

    def test_reset_restores_outer_context(self) -> None:
        """Test that reset leaves unrelated bindings in place."""
        structlog.contextvars.bind_contextvars(service="gateway")
        try:
            sink = ContextVarsLogSink({})
            sink.add_fields([("span_id", "b7ad6b7169203331")])
            sink.reset()

            assert structlog.contextvars.get_contextvars() == {"service": "gateway"}
        finally:
            structlog.contextvars.clear_contextvars()


class TestTraceparentMiddleware:
    """Test the middleware in an ASGI application."""

    def test_continues_incoming_trace(self) -> None:
        """Test that the downstream app sees a continued traceparent."""
        with build_client() as client:
            body = client.get("/echo", headers={"traceparent": VALID_HEADER}).json()

        fields = body["trace_fields"]
        assert fields["trace_id"] == "4bf92f3577b34da6a3ce929d0e0e4736"
        assert fields["parent_span_id"] == "00f067aa0ba902b7"
        assert fields["trace_sampled"] is True
        assert body["traceparent"] == (
            f"00-4bf92f3577b34da6a3ce929d0e0e4736-{fields['span_id']}-01"
        )
        assert body["traceparent_count"] == 1

    def test_starts_trace_without_header(self) -> None:
        """Test that a trace is started when no header is sent."""
        config = EngineConfig(vocabulary=OutputVocabulary.STACKDRIVER, project_id="my-project")
        with build_client(config) as client:
            body = client.get("/echo").json()

        trace_id = body["traceparent"].split("-")[1]
        fields = body["trace_fields"]
        assert re.fullmatch(r"00-[0-9a-f]{32}-[0-9a-f]{16}-01", body["traceparent"])
        assert fields["logging.googleapis.com/trace"] == f"projects/my-project/traces/{trace_id}"
        assert fields["logging.googleapis.com/trace_sampled"] is True
        assert "parent_span_id" not in fields

    def test_fields_bound_to_log_context(self) -> None:
        """Test that handlers log with the trace fields bound."""
        with build_client(EngineConfig(vocabulary=OutputVocabulary.ECS)) as client:
            body = client.get("/echo", headers={"traceparent": VALID_HEADER}).json()

        assert body["log_context"] == body["trace_fields"]
        assert body["log_context"]["span.parent_id"] == "00f067aa0ba902b7"

    def test_access_log_event(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that one access event carrying the trace fields is logged per request."""
        with capture_logs() as logs:
            monkeypatch.setattr(
                middleware_module, "log", structlog.get_logger(middleware_module.__name__)
            )
            with build_client(EngineConfig(vocabulary=OutputVocabulary.DATADOG)) as client:
                response = client.get("/echo?x=1", headers={"traceparent": VALID_HEADER})

        assert response.status_code == 200
        events = [entry for entry in logs if entry["event"] == "http_request_completed"]
        assert len(events) == 1
        data = events[0]
        assert data["method"] == "GET"
        assert data["path"] == "/echo"
        assert data["status"] == 200
        assert data["duration_ms"] >= 0
        assert data["dd.trace_id"] == "4bf92f3577b34da6a3ce929d0e0e4736"
        assert data["dd.parent_id"] == "00f067aa0ba902b7"
        assert data["dd.sampled"] is True
        for name, value in response.json()["trace_fields"].items():
            assert data[name] == value

    def test_downstream_errors_propagate(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that app errors are logged and re-raised, not swallowed."""
        recorder = RecordingLog()
        monkeypatch.setattr(middleware_module, "log", recorder)

        with build_client() as client:
            with pytest.raises(RuntimeError, match="handler failed"):
                client.get("/boom")

        assert [e[0] for e in recorder.events] == ["http_request_failed", "http_request_completed"]

    @pytest.mark.asyncio
    async def test_non_http_scope_passes_through(self) -> None:
        """Test that lifespan scopes are not touched."""
        seen: list[dict[str, Any]] = []

        async def app(scope: Any, receive: Any, send: Any) -> None:
            seen.append(dict(scope))

        async def receive() -> dict[str, Any]:
            return {"type": "lifespan.startup"}

        async def send(message: Any) -> None:
            return None

        scope = {"type": "lifespan", "headers": [(b"traceparent", b"x")]}
        await TraceparentMiddleware(app)(scope, receive, send)

        assert seen == [{"type": "lifespan", "headers": [(b"traceparent", b"x")]}]


class TestLibraryImport:
    """Test embedding the middleware in a host application."""

    def test_import_keeps_host_logging(self) -> None:
        """Test that importing the package leaves the host's logging setup alone."""
        code = (
            "import logging, structlog\n"
            "handler = logging.StreamHandler()\n"
            "root = logging.getLogger()\n"
            "root.addHandler(handler)\n"
            "root.setLevel(logging.WARNING)\n"
            "import simpletrace.config, simpletrace.service\n"
            "print(handler in root.handlers, root.level, structlog.is_configured())\n"
        )
        env = {**os.environ, "PYTHONPATH": os.pathsep.join(sys.path)}

        result = subprocess.run(
            [sys.executable, "-c", code], capture_output=True, text=True, env=env, check=True
        )

        assert result.stdout.split() == ["True", str(logging.WARNING), "False"]
