"""HTTP transport from the chat client to the relay endpoint."""

from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Dict, Optional, Protocol

import httpx

from cycle_coach.config.settings import settings
from cycle_coach.domain.exceptions import (
    ApiError,
    BusinessError,
    NetworkError,
    QuotaExceededError,
    RateLimitError,
)


class RelayTransport(Protocol):
    def open(self, payload: Dict[str, Any]) -> AsyncContextManager[AsyncIterator[bytes]]:
        """Post one chat turn; the context yields the response body as byte chunks.

        Non-success statuses raise before the context body runs.
        """
        ...


class HttpRelayTransport:
    """Posts turns to the relay with httpx and exposes the streamed body."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self._url = url or settings.relay_url
        self._timeout = timeout or settings.http_timeout
        self._headers = {"Content-Type": "application/json", **(headers or {})}

    @asynccontextmanager
    async def open(self, payload: Dict[str, Any]) -> AsyncIterator[AsyncIterator[bytes]]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, trust_env=False) as client:
                async with client.stream("POST", self._url, json=payload, headers=self._headers) as resp:
                    if resp.status_code >= 400:
                        await resp.aread()
                        raise self._map_error(resp)
                    yield resp.aiter_bytes()
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))

    @staticmethod
    def _map_error(resp: httpx.Response) -> BusinessError:
        message = "Failed to get response"
        try:
            body = resp.json()
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
        except ValueError:
            pass
        if resp.status_code == 429:
            return RateLimitError(code="RATE_LIMIT", message=message)
        if resp.status_code == 402:
            return QuotaExceededError(code="PAYMENT_REQUIRED", message=message)
        return ApiError(code="RELAY_ERROR", message=message, http_status=resp.status_code)
