"""
Server bootstrap for the lightning address gateway.

Wires settings, error tracking and the resolver into the Starlette app and
runs it under uvicorn.
"""

import asyncio
import logging

import uvicorn
from starlette.applications import Starlette

from lnaddress.reporting import ErrorReporter
from lnaddress.resolver import AddressResolver
from lnaddress.routes import GatewayDependencies, create_app
from lnaddress.settings import Settings

GRACEFUL_SHUTDOWN_SECONDS = 10


class ServerApp:
    """Owns the gateway's long-lived resources."""

    def __init__(self, settings: Settings) -> None:
        self._logger = logging.getLogger(__name__)
        self._settings = settings
        self._reporter = ErrorReporter.from_settings(settings)
        self._dependencies = GatewayDependencies()
        self._app = create_app(self._dependencies, self._reporter)

    def startup(self) -> None:
        """Prepare resources required to serve requests."""
        self._logger.info("Starting server bootstrap")
        self._reporter.start()
        self._dependencies.attach_resolver(AddressResolver.from_settings(self._settings))

    def shutdown(self) -> None:
        """Release acquired resources."""
        self._logger.info("Shutting down server bootstrap")
        resolver = self._dependencies.detach_resolver()
        if resolver is not None:
            asyncio.run(resolver.aclose())
        self._reporter.flush()

    def serve_forever(self) -> None:
        """Run uvicorn until interrupted; SIGINT and SIGTERM trigger a graceful stop."""
        host = self._settings.host
        port = self._settings.port
        self._logger.info("Starting HTTP listener", extra={"host": host, "port": port})
        uvicorn.run(
            self._app,
            host=host,
            port=port,
            log_config=None,
            timeout_graceful_shutdown=GRACEFUL_SHUTDOWN_SECONDS,
        )

    @property
    def app(self) -> Starlette:
        """Expose the configured Starlette instance."""
        return self._app


def build_server(settings: Settings) -> ServerApp:
    """Factory used by main.py to create the configured server instance."""
    return ServerApp(settings)
