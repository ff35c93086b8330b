"""Tests for the trace-propagating reverse proxy."""

import re

import httpx
import pytest
from fastapi.testclient import TestClient

from simpletrace.config.settings import AppConfig
from simpletrace.service.proxy import create_app
from simpletrace.tracecontext import EngineConfig, OutputVocabulary

VALID_HEADER = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"


class Upstream:
    """Mock upstream recording the requests it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(
            201,
            json={"path": request.url.path, "query": request.url.query.decode()},
            headers={"x-upstream": "yes", "connection": "close"},
        )


@pytest.fixture
def settings() -> AppConfig:
    return AppConfig(upstream_url="http://upstream.internal", upstream_timeout_seconds=5)


def make_client(
    settings: AppConfig,
    handler: object,
    engine_config: EngineConfig | None = None,
) -> TestClient:
    app = create_app(
        settings,
        engine_config or EngineConfig(),
        transport=httpx.MockTransport(handler),  # type: ignore[arg-type]
    )
    return TestClient(app)


class TestProxy:
    """Test request forwarding."""

    def test_forwards_rewritten_traceparent(self, settings: AppConfig) -> None:
        """Test that the upstream receives the continued trace with a new span."""
        upstream = Upstream()
        with make_client(settings, upstream) as client:
            response = client.post(
                "/api/items?limit=5",
                headers={"traceparent": VALID_HEADER},
                content=b'{"name": "x"}',
            )

        assert response.status_code == 201
        assert response.json() == {"path": "/api/items", "query": "limit=5"}
        assert response.headers["x-upstream"] == "yes"

        forwarded = upstream.requests[0]
        assert forwarded.method == "POST"
        assert forwarded.content == b'{"name": "x"}'
        assert forwarded.url.host == "upstream.internal"
        _, trace_id, span_id, flags = forwarded.headers["traceparent"].split("-")
        assert trace_id == "4bf92f3577b34da6a3ce929d0e0e4736"
        assert span_id != "00f067aa0ba902b7"
        assert flags == "01"

    def test_encoded_path_forwarded_unchanged(self, settings: AppConfig) -> None:
        """Test that percent-encoded path characters are not decoded on the way upstream."""
        upstream = Upstream()
        with make_client(settings, upstream) as client:
            response = client.get("/files/a%3Fb%2Fc?x=1")

        assert response.status_code == 201
        forwarded = upstream.requests[0]
        assert forwarded.url.raw_path == b"/files/a%3Fb%2Fc?x=1"
        assert forwarded.url.params["x"] == "1"
        assert response.json() == {"path": "/files/a?b/c", "query": "x=1"}

    def test_request_without_query(self, settings: AppConfig) -> None:
        """Test that no empty query string is appended."""
        upstream = Upstream()
        with make_client(settings, upstream) as client:
            client.delete("/api/items/7")

        assert upstream.requests[0].url.raw_path == b"/api/items/7"

    def test_starts_trace_for_upstream(self, settings: AppConfig) -> None:
        """Test that requests without a header reach the upstream with a new trace."""
        upstream = Upstream()
        engine_config = EngineConfig(vocabulary=OutputVocabulary.TEMPO)
        with make_client(settings, upstream, engine_config) as client:
            client.get("/", headers={"traceparent": "00-abc-def"})

        traceparent = upstream.requests[0].headers["traceparent"]
        assert re.fullmatch(r"00-[0-9a-f]{32}-[0-9a-f]{16}-01", traceparent)

    def test_hop_by_hop_headers_dropped(self, settings: AppConfig) -> None:
        """Test that connection-level headers are not relayed."""
        upstream = Upstream()
        with make_client(settings, upstream) as client:
            response = client.get("/", headers={"keep-alive": "timeout=5"})

        assert "keep-alive" not in upstream.requests[0].headers
        assert "connection" not in response.headers

    def test_healthz_is_local(self, settings: AppConfig) -> None:
        """Test that the health check does not reach the upstream."""
        upstream = Upstream()
        with make_client(settings, upstream) as client:
            response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert upstream.requests == []

    def test_upstream_unavailable(self, settings: AppConfig) -> None:
        """Test that connection errors become 502 responses."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with make_client(settings, refuse) as client:
            response = client.get("/anything")

        assert response.status_code == 502
        assert response.json() == {"detail": "upstream unavailable"}

    def test_upstream_timeout(self, settings: AppConfig) -> None:
        """Test that upstream timeouts become 504 responses."""

        def stall(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with make_client(settings, stall) as client:
            response = client.get("/slow")

        assert response.status_code == 504


class TestCreateApp:
    """Test application construction."""

    def test_engine_config_loaded_from_settings(self) -> None:
        """Test that the engine is configured from settings when not given."""
        settings = AppConfig(upstream_url="http://upstream.internal", trace_format="ecs")
        upstream = Upstream()
        app = create_app(settings, transport=httpx.MockTransport(upstream))

        with TestClient(app) as client:
            client.get("/")

        assert re.fullmatch(
            r"00-[0-9a-f]{32}-[0-9a-f]{16}-01", upstream.requests[0].headers["traceparent"]
        )
