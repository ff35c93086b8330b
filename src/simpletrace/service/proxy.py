"""FastAPI reverse proxy propagating trace context upstream.

Every request is run through TraceparentMiddleware and then forwarded to the
configured upstream with the rewritten ``traceparent`` header.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from simpletrace import __version__
from simpletrace.config.engine_loader import load_engine_config
from simpletrace.config.settings import AppConfig, get_settings
from simpletrace.service.middleware import TraceparentMiddleware
from simpletrace.telemetry.events import (
    SERVICE_STARTING,
    SERVICE_STOPPED,
    UPSTREAM_REQUEST_FAILED,
    UPSTREAM_TIMEOUT,
)
from simpletrace.tracecontext import EngineConfig

log = structlog.get_logger(__name__)

# Connection-level headers are not forwarded (RFC 9110 section 7.6.1)
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

_REQUEST_SKIP_HEADERS = HOP_BY_HOP_HEADERS | {"host", "content-length"}
# httpx decodes the body, so the upstream encoding and length no longer apply
_RESPONSE_SKIP_HEADERS = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def _upstream_target(request: Request) -> httpx.URL:
    # Percent-encoding in the path must reach the upstream unchanged
    raw_path = request.scope.get("raw_path") or request.url.path.encode("utf-8")
    target = raw_path.split(b"?", 1)[0]
    query_string = request.scope.get("query_string", b"")
    if query_string:
        target += b"?" + query_string
    return httpx.URL(target.decode("latin-1"))


async def forward_request(request: Request, client: httpx.AsyncClient) -> Response:
    """Forward a request to the upstream and relay its response.

    Args:
        request: Incoming request, with its ``traceparent`` already rewritten.
        client: Client bound to the upstream base URL.

    Returns:
        The upstream response, or a 502/504 JSON error if the upstream could
        not be reached in time.
    """
    headers = [
        (name, value)
        for name, value in request.headers.items()
        if name.lower() not in _REQUEST_SKIP_HEADERS
    ]
    upstream_request = client.build_request(
        request.method,
        _upstream_target(request),
        headers=headers,
        content=await request.body(),
    )

    try:
        upstream_response = await client.send(upstream_request)
    except httpx.TimeoutException as e:
        log.warning(UPSTREAM_TIMEOUT, url=str(upstream_request.url), error=str(e))
        return JSONResponse({"detail": "upstream timed out"}, status_code=504)
    except httpx.RequestError as e:
        log.warning(
            UPSTREAM_REQUEST_FAILED,
            url=str(upstream_request.url),
            error=str(e),
            error_type=type(e).__name__,
        )
        return JSONResponse({"detail": "upstream unavailable"}, status_code=502)

    response_headers = [
        (name, value)
        for name, value in upstream_response.headers.multi_items()
        if name.lower() not in _RESPONSE_SKIP_HEADERS
    ]
    response = Response(content=upstream_response.content, status_code=upstream_response.status_code)
    for name, value in response_headers:
        response.headers.append(name, value)
    return response


def create_app(
    settings: AppConfig | None = None,
    engine_config: EngineConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the proxy application.

    Args:
        settings: Application settings. Defaults to the settings singleton.
        engine_config: Trace engine configuration. Loaded from ``settings``
            when omitted.
        transport: Optional httpx transport for the upstream client.

    Returns:
        Configured FastAPI application.

    Raises:
        EngineConfigError: If the trace engine configuration is invalid.
    """
    settings = settings or get_settings()
    engine_config = engine_config or load_engine_config(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        log.info(
            SERVICE_STARTING,
            upstream_url=settings.upstream_url,
            format=engine_config.vocabulary.value,
        )
        async with httpx.AsyncClient(
            base_url=settings.upstream_url,
            timeout=settings.upstream_timeout_seconds,
            transport=transport,
        ) as client:
            app.state.upstream_client = client
            yield
        log.info(SERVICE_STOPPED)

    app = FastAPI(title="simpletrace", version=__version__, lifespan=lifespan)
    app.add_middleware(TraceparentMiddleware, config=engine_config)

    @app.get("/healthz", include_in_schema=False)
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
    async def proxy(request: Request, path: str) -> Response:
        return await forward_request(request, request.app.state.upstream_client)

    return app
