from __future__ import annotations
import logging
from typing import Optional

import httpx

logger = logging.getLogger("cryptosi.http")


class HttpClient:
    """
    Owns one httpx.AsyncClient and sends each request exactly once.
    A failed attempt surfaces to the caller; nothing is retried.
    """
    def __init__(
        self,
        timeout: httpx.Timeout | float | None = None,
        follow_redirects: bool = True,
        headers: Optional[dict] = None,
    ) -> None:
        if not isinstance(timeout, httpx.Timeout):
            timeout = httpx.Timeout(timeout)
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=follow_redirects,
            headers=headers or {},
            http2=True,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def post(self, url: str, **kwargs) -> httpx.Response:
        """POST once; non-2xx answers raise httpx.HTTPStatusError."""
        resp = await self._client.request("POST", url, **kwargs)
        logger.debug("POST %s -> %s", url, resp.status_code)
        resp.raise_for_status()
        return resp

__all__ = ["HttpClient"]
