"""Error tracking through Sentry, held as an explicit object."""

import logging
from dataclasses import dataclass

import sentry_sdk

from lnaddress.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ErrorReporter:
    """
    Forwards unhandled exceptions to Sentry when a DSN is configured.

    Without a DSN every method is a no-op, so callers never need to check
    whether error tracking is enabled.
    """

    dsn: str | None = None
    flush_timeout: float = 2.0
    _started: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ErrorReporter":
        return cls(dsn=settings.sentry_dsn)

    @property
    def enabled(self) -> bool:
        return self._started

    def start(self) -> None:
        """Initialise the Sentry SDK if a DSN was provided."""
        if not self.dsn or self._started:
            return
        try:
            sentry_sdk.init(dsn=self.dsn)
        except Exception:  # noqa: BLE001
            logger.exception("Sentry initialisation failed; error tracking disabled.")
            return
        self._started = True
        logger.info("Sentry error tracking enabled.")

    def capture(self, exc: BaseException) -> None:
        if self._started:
            sentry_sdk.capture_exception(exc)

    def flush(self) -> None:
        """Drain queued events before the process exits."""
        if self._started:
            sentry_sdk.flush(timeout=self.flush_timeout)
