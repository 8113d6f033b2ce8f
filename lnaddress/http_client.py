"""HTTP client factory for the outbound discovery requests."""

import httpx

from lnaddress.settings import Settings


def create_discovery_client(settings: Settings) -> httpx.AsyncClient:
    """
    Build the AsyncClient shared by every lookup.

    No timeout is passed so httpx's transport defaults apply, and redirects
    are left unfollowed: a 3xx from a well-known endpoint is a failure.
    """
    return httpx.AsyncClient(
        follow_redirects=False,
        headers={"User-Agent": settings.user_agent},
    )
