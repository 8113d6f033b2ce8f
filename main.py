"""Entry point for the lightning address gateway."""

import logging

from lnaddress.server import build_server
from lnaddress.settings import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _configure_logging(settings: Settings | None = None) -> None:
    # Until settings are validated, log at INFO.
    log_level = settings.log_level if settings else "INFO"
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings and settings.log_file_path:
        handlers.append(logging.FileHandler(settings.log_file_path, encoding="utf-8"))
    logging.basicConfig(level=log_level, format=LOG_FORMAT, handlers=handlers, force=True)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def main() -> None:
    """Bootstrap and run the HTTP server."""
    _configure_logging()
    logger = logging.getLogger("lightning-address-gateway")
    try:
        settings = Settings.load()
    except ValueError:
        logger.exception("Invalid configuration.")
        raise
    _configure_logging(settings)
    server = build_server(settings)

    try:
        server.startup()
        logger.info(
            "Gateway ready at http://%s:%s/lightning-address-details",
            settings.host,
            settings.port,
        )
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutdown requested (Ctrl+C).")
    except Exception:
        logger.exception("Server stopped due to an unexpected error.")
        raise
    finally:
        server.shutdown()
        logger.info("Server shutdown complete.")


if __name__ == "__main__":
    main()
