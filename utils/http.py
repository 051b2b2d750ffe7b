"""
Shared httpx helpers.

Services accept an optional AsyncClient (tests inject one backed by
httpx.MockTransport). Without one, each call opens and closes its own.
"""

from contextlib import nullcontext
from typing import Optional

import httpx

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def client_session(client: Optional[httpx.AsyncClient] = None, **kwargs):
    """
    Async context manager yielding an AsyncClient.

    Usage:
        async with client_session(self._client, timeout=10) as client:
            ...
    """
    if client is not None:
        # Injected clients are owned by the caller and stay open
        return nullcontext(client)
    kwargs.setdefault("follow_redirects", True)
    return httpx.AsyncClient(**kwargs)
