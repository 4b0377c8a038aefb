"""Feed gateway — async HTTP client for the remote feed service.

One class covers both directions of traffic the feed-view package needs:

  - view()                   — one page of the feed view (read)
  - like() / unlike()        — create or remove the actor's like (write)
  - repost() / unrepost()    — create or remove the actor's repost (write)

Cross-cutting concerns handled here, not in the controller:

  - Separate request budgets for reads and writes (RequestBudget), so
    toggles and page fetches never queue behind each other
  - Retry with exponential backoff via tenacity, for reads only. A retried
    write could land twice, so writes fail on the first transport error.
  - Request timeout on the httpx client. A hung call would otherwise hold the
    controller's barrier forever.
  - Error normalization: every failure leaves as a GatewayError carrying a
    human-readable message. Callers get one failure kind, not httpx's taxonomy.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
from pydantic import ValidationError
from skyfeed_shared.config_models import GatewayConfig
from skyfeed_shared.feed_models import FeedViewParams, FeedViewResponse
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from skyfeed_gateway.rate_limit import RequestBudget

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """A call to the feed service failed (transport, HTTP status or payload)."""


class FeedGateway:
    """Async client for the feed view endpoint and the like/repost calls.

    The httpx client is created lazily on first use and reused until close().
    Use as an async context manager to close it automatically.
    """

    def __init__(self, config: GatewayConfig) -> None:
        self.config = config
        self.read_budget = RequestBudget.for_rate("read", config.read_rate_limit_per_second)
        self.write_budget = RequestBudget.for_rate("write", config.write_rate_limit_per_second)
        self._client: httpx.AsyncClient | None = None
        self.request_count: int = 0

    @property
    def actor(self) -> str:
        return self.config.actor

    async def __aenter__(self) -> FeedGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _resolve_credential(self) -> str | None:
        """Read the access token from the environment variable named in config."""
        env_var = self.config.auth_env_var
        if not env_var:
            return None
        value = os.environ.get(env_var, "")
        if not value:
            raise ValueError(f"Environment variable '{env_var}' is not set or empty")
        return value

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with auth headers."""
        if self._client is None:
            headers: dict[str, str] = {}
            credential = self._resolve_credential()
            if credential:
                headers["Authorization"] = f"Bearer {credential}"
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers=headers,
                timeout=self.config.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        client: httpx.AsyncClient,
        budget: RequestBudget,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make one HTTP request paced by `budget`. Raises on non-2xx."""
        await budget.acquire()
        self.request_count += 1
        response = await client.request(method, url, **kwargs)
        response.raise_for_status()
        return response

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, httpx.TimeoutException)),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _request_with_retry(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """A read through the read budget, retried on transient transport errors."""
        return await self._request(client, self.read_budget, method, url, **kwargs)

    async def view(self, params: FeedViewParams) -> FeedViewResponse:
        """Fetch one page of the feed view."""
        method = self.config.feed_view_method
        client = await self._get_client()
        try:
            response = await self._request_with_retry(
                client,
                "GET",
                f"xrpc/{method}",
                params=params.to_query(),
            )
            page = FeedViewResponse.model_validate(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            message = _describe_failure(method, e)
            logger.warning(message)
            raise GatewayError(message) from e

        logger.debug(
            f"{method}: fetched {len(page.feed)} entries "
            f"(before={params.before}, limit={params.limit})"
        )
        return page

    async def like(self, actor: str, uri: str) -> None:
        await self._write(self.config.like_method, actor, uri)

    async def unlike(self, actor: str, uri: str) -> None:
        await self._write(self.config.unlike_method, actor, uri)

    async def repost(self, actor: str, uri: str) -> None:
        await self._write(self.config.repost_method, actor, uri)

    async def unrepost(self, actor: str, uri: str) -> None:
        await self._write(self.config.unrepost_method, actor, uri)

    async def _write(self, method: str, actor: str, uri: str) -> None:
        """POST a like/repost style call. The response body is ignored."""
        client = await self._get_client()
        try:
            await self._request(
                client,
                self.write_budget,
                "POST",
                f"xrpc/{method}",
                json={"actor": actor, "subject": uri},
            )
        except httpx.HTTPError as e:
            message = _describe_failure(method, e)
            logger.warning(message)
            raise GatewayError(message) from e
        logger.info(f"{method}: {actor} -> {uri}")


def _describe_failure(method: str, error: Exception) -> str:
    """Turn an httpx or parsing failure into one readable line."""
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return f"{method} returned HTTP {status} {error.response.reason_phrase}".rstrip()
    if isinstance(error, httpx.TimeoutException):
        return f"{method} timed out"
    if isinstance(error, httpx.HTTPError):
        return f"{method} request failed: {error!r}"
    return f"{method} returned an invalid response: {error}"
