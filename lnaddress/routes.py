"""HTTP routes and middleware for the lightning address gateway."""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from lnaddress.reporting import ErrorReporter
from lnaddress.resolver import AddressResolver, Resolution

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
CORS_ALLOW_METHODS = ["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"]


class PrettyJSONResponse(JSONResponse):
    """JSON body indented by two spaces."""

    def render(self, content: Any) -> bytes:
        return json.dumps(content, ensure_ascii=False, indent=2).encode("utf-8")


@dataclass
class GatewayDependencies:
    """Runtime dependencies required by the route handlers."""

    resolver: AddressResolver | None = None

    def attach_resolver(self, resolver: AddressResolver) -> None:
        self.resolver = resolver

    def detach_resolver(self) -> AddressResolver | None:
        resolver, self.resolver = self.resolver, None
        return resolver

    def require_resolver(self) -> AddressResolver:
        if self.resolver is None:
            raise RuntimeError("Address resolver is not initialized.")
        return self.resolver


def render_resolution(resolution: Resolution) -> JSONResponse:
    response_class = PrettyJSONResponse if resolution.pretty else JSONResponse
    return response_class(resolution.result.to_dict(), status_code=resolution.status_code)


async def request_context_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Tag every request with an ID and log it once it completes."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        logger.info(
            "%s %s %s",
            request.method,
            request.url.path,
            status_code,
            extra={
                "request_id": request_id,
                "status_code": status_code,
                "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )


def create_app(dependencies: GatewayDependencies, reporter: ErrorReporter | None = None) -> Starlette:
    """Build the Starlette application serving the lookup endpoint."""
    reporter = reporter or ErrorReporter()

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        yield
        # Close pooled connections on the loop that opened them.
        resolver = dependencies.detach_resolver()
        if resolver is not None:
            await resolver.aclose()

    async def lightning_address_details(request: Request) -> Response:
        resolver = dependencies.require_resolver()
        # A repeated ln uses its first value.
        values = request.query_params.getlist("ln")
        identifier = values[0] if values else ""
        resolution = await resolver.resolve(identifier)
        return render_resolution(resolution)

    async def unhandled_error(request: Request, exc: Exception) -> Response:
        logger.error(
            "Unhandled error on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
            extra={"request_id": getattr(request.state, "request_id", None)},
        )
        reporter.capture(exc)
        return JSONResponse({"message": "Internal Server Error"}, status_code=500)

    app = Starlette(
        routes=[
            Route("/lightning-address-details", lightning_address_details, methods=["GET"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=CORS_ALLOW_METHODS,
                allow_headers=["*"],
                expose_headers=[REQUEST_ID_HEADER],
            ),
            Middleware(BaseHTTPMiddleware, dispatch=request_context_middleware),
        ],
        exception_handlers={Exception: unhandled_error},
        lifespan=lifespan,
    )
    logger.info("Lightning address routes registered.")
    return app
