"""Environment-driven configuration utilities for the gateway."""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "lightning-address-gateway/0.1"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _optional(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass(frozen=True, slots=True)
class Settings:
    """Container for runtime configuration."""

    port: int = 3000
    host: str = "0.0.0.0"
    sentry_dsn: str | None = None
    log_file_path: str | None = None
    log_level: str = "INFO"
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def load(cls) -> "Settings":
        """
        Load configuration from environment variables.

        A local .env file is honoured when present; a missing one only means
        the process environment is used as-is.
        """
        if not load_dotenv():
            logger.info("No .env file found, using process environment only.")

        port_raw = os.getenv("PORT", "").strip() or "3000"
        try:
            port = int(port_raw)
        except ValueError as exc:
            raise ValueError("PORT must be an integer.") from exc
        if not 0 < port <= 65535:
            raise ValueError("PORT must be between 1 and 65535.")

        host = os.getenv("HOST", "").strip() or "0.0.0.0"

        log_level = (os.getenv("LOG_LEVEL", "").strip() or "INFO").upper()
        if log_level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}.")

        return cls(
            port=port,
            host=host,
            sentry_dsn=_optional("SENTRY_DSN"),
            log_file_path=_optional("LOG_FILE_PATH"),
            log_level=log_level,
            user_agent=os.getenv("USER_AGENT", "").strip() or DEFAULT_USER_AGENT,
        )
