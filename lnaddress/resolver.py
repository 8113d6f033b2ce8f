"""
Lightning address resolution.

An address ``user@domain`` maps to two well-known discovery documents on
``domain``. Both are fetched one after the other; each lookup fails on its
own without affecting the other, and the pair of outcomes decides the status
code handed back to the caller.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from lnaddress.http_client import create_discovery_client
from lnaddress.settings import Settings

logger = logging.getLogger(__name__)

LNURLP_URL_TEMPLATE = "https://{domain}/.well-known/lnurlp/{user}"
KEYSEND_URL_TEMPLATE = "https://{domain}/.well-known/keysend/{user}"


class InvalidAddressError(ValueError):
    """The identifier is not of the form ``user@domain``."""


class DiscoveryError(RuntimeError):
    """Base class for failures while fetching a discovery document."""

    def __init__(self, message: str, *, url: str) -> None:
        super().__init__(message)
        self.url = url


class UpstreamUnreachableError(DiscoveryError):
    """No response was received from the endpoint."""


class UpstreamStatusError(DiscoveryError):
    """The endpoint answered with a status of 300 or above."""

    def __init__(self, message: str, *, url: str, status_code: int) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class InvalidJSONError(DiscoveryError):
    """The endpoint answered successfully but the body is not JSON."""

    def __init__(self, message: str, *, url: str, status_code: int) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class DiscoveryUrls:
    lnurlp: str
    keysend: str


def parse_address(identifier: str) -> DiscoveryUrls:
    """Split ``user@domain`` and build both discovery URLs."""
    parts = identifier.split("@")
    if len(parts) != 2 or not all(parts):
        raise InvalidAddressError(f"Invalid lightning address {identifier!r}")

    user, domain = parts
    return DiscoveryUrls(
        lnurlp=LNURLP_URL_TEMPLATE.format(domain=domain, user=user),
        keysend=KEYSEND_URL_TEMPLATE.format(domain=domain, user=user),
    )


class OutcomeKind(str, Enum):
    NO_RESPONSE = "no_response"
    FAILURE_STATUS = "failure_status"
    INVALID_BODY = "invalid_body"
    SUCCESS = "success"


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """What happened to a single discovery request."""

    kind: OutcomeKind
    status_code: int | None = None
    value: Any = None

    @classmethod
    def no_response(cls) -> "FetchOutcome":
        return cls(OutcomeKind.NO_RESPONSE)

    @classmethod
    def failure_status(cls, status_code: int) -> "FetchOutcome":
        return cls(OutcomeKind.FAILURE_STATUS, status_code)

    @classmethod
    def invalid_body(cls, status_code: int) -> "FetchOutcome":
        return cls(OutcomeKind.INVALID_BODY, status_code)

    @classmethod
    def success(cls, value: Any, status_code: int) -> "FetchOutcome":
        return cls(OutcomeKind.SUCCESS, status_code, value)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


@dataclass(slots=True)
class ResolutionResult:
    lnurlp: Any = None
    keysend: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"lnurlp": self.lnurlp, "keysend": self.keysend}


@dataclass(frozen=True, slots=True)
class Resolution:
    """Result body plus the HTTP status and rendering chosen for it."""

    result: ResolutionResult
    status_code: int
    pretty: bool = True


def decide_status(lnurlp: FetchOutcome, keysend: FetchOutcome) -> tuple[int, bool]:
    """
    Pick the response status from both outcomes.

    Returns ``(status_code, pretty)``. An unparseable body still counts as a
    received response, but never as a failure status.
    """
    if lnurlp.kind is OutcomeKind.NO_RESPONSE and keysend.kind is OutcomeKind.NO_RESPONSE:
        return 400, False
    if lnurlp.kind is OutcomeKind.FAILURE_STATUS and keysend.kind is OutcomeKind.FAILURE_STATUS:
        return lnurlp.status_code, True
    return 200, True


@dataclass(slots=True)
class AddressResolver:
    """Resolves lightning addresses over a shared AsyncClient."""

    _client: httpx.AsyncClient
    _logger: logging.Logger = logger

    @classmethod
    def from_settings(cls, settings: Settings) -> "AddressResolver":
        """Factory that builds the resolver from Settings."""
        return cls(create_discovery_client(settings))

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._client.aclose()

    async def resolve(self, identifier: str) -> Resolution:
        """Look up both discovery documents for ``identifier``."""
        result = ResolutionResult()
        try:
            urls = parse_address(identifier)
        except InvalidAddressError as exc:
            self._logger.info("%s", exc)
            return Resolution(result, 400, pretty=False)

        lnurlp = await self.fetch(urls.lnurlp)
        if lnurlp.ok:
            result.lnurlp = lnurlp.value

        keysend = await self.fetch(urls.keysend)
        if keysend.ok:
            result.keysend = keysend.value

        status_code, pretty = decide_status(lnurlp, keysend)
        self._logger.debug(
            "Resolved lightning address",
            extra={
                "identifier": identifier,
                "lnurlp": lnurlp.kind.value,
                "keysend": keysend.kind.value,
                "status_code": status_code,
            },
        )
        return Resolution(result, status_code, pretty=pretty)

    async def fetch(self, url: str) -> FetchOutcome:
        """Fetch ``url`` and fold any failure into an outcome after logging it."""
        try:
            value, status_code = await self.fetch_json(url)
        except UpstreamUnreachableError as exc:
            self._logger.error("%s", exc, extra={"url": url})
            return FetchOutcome.no_response()
        except UpstreamStatusError as exc:
            self._logger.error("%s", exc, extra={"url": url, "status_code": exc.status_code})
            return FetchOutcome.failure_status(exc.status_code)
        except InvalidJSONError as exc:
            self._logger.error("%s", exc, extra={"url": url, "status_code": exc.status_code})
            return FetchOutcome.invalid_body(exc.status_code)
        return FetchOutcome.success(value, status_code)

    async def fetch_json(self, url: str) -> tuple[Any, int]:
        """GET ``url`` and decode its JSON body, raising a DiscoveryError on failure."""
        # IDNA failures on malformed hosts surface as ValueError, not InvalidURL.
        try:
            request = self._client.build_request("GET", url)
            response = await self._client.send(request, stream=True)
        except (httpx.RequestError, httpx.InvalidURL, ValueError) as exc:
            raise UpstreamUnreachableError(f"No details: {url} - {exc!s}", url=url) from exc

        try:
            if response.status_code >= 300:
                raise UpstreamStatusError(
                    f"No details: {url} - status {response.status_code}",
                    url=url,
                    status_code=response.status_code,
                )

            # The status line arrived, so a broken body is a bad payload, not a missing response.
            try:
                await response.aread()
                data = response.json()
            except (httpx.RequestError, json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise InvalidJSONError(
                    f"Invalid JSON from {url}: {exc!s}",
                    url=url,
                    status_code=response.status_code,
                ) from exc
        finally:
            await response.aclose()

        return data, response.status_code
