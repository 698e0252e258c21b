"""
Shared plumbing for authenticated Google REST calls
"""

import time
from typing import Optional, Protocol

import httpx

from scribeai.core.logging import get_logger, audit_logger

logger = get_logger(__name__)


class TokenProvider(Protocol):
    async def get_access_token(self) -> str: ...


class GoogleApiClient:
    """Base class holding the HTTP client and the bearer-token source."""

    service_name = "google"

    def __init__(self, http_client: httpx.AsyncClient, token_provider: TokenProvider):
        self.http_client = http_client
        self.token_provider = token_provider

    async def _request(
        self,
        method: str,
        url: str,
        token: Optional[str] = None,
        **kwargs,
    ) -> httpx.Response:
        """
        Sends one request with an Authorization header. Non-2xx responses are
        returned, not raised; transport errors propagate as httpx exceptions.
        """
        if token is None:
            token = await self.token_provider.get_access_token()
        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {token}"

        start_time = time.perf_counter()
        status_code = None
        try:
            response = await self.http_client.request(method, url, headers=headers, **kwargs)
            status_code = response.status_code
            return response
        finally:
            audit_logger.log_external_api_call(
                service=self.service_name,
                endpoint=f"{method} {httpx.URL(url).path}",
                response_status=status_code,
                response_time_ms=int((time.perf_counter() - start_time) * 1000),
            )
