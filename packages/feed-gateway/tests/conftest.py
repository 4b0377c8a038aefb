"""Shared test fixtures for Feed Gateway tests.

Provides:
  - Mock HTTP transport for httpx (intercepts all requests)
  - A GatewayConfig pointed at a fake host
  - Environment variable setup for credential resolution
  - Sample feed view pages
  - A no-backoff switch for the read retry policy
"""

from typing import Any
from unittest.mock import patch

import httpx
import pytest
from skyfeed_gateway.client import FeedGateway
from skyfeed_shared.config_models import GatewayConfig
from tenacity import wait_none


class MockTransport(httpx.AsyncBaseTransport):
    """Mock HTTP transport that returns preconfigured responses.

    Each call to handle_async_request pops the next entry from the list. An
    entry that is an exception instance is raised instead of returned. If the
    list is exhausted, returns a 500 error.
    """

    def __init__(self, responses: list[httpx.Response | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            response.stream = httpx.ByteStream(response.content)
            return response
        return httpx.Response(500, json={"error": "No more mock responses"})


def _feed_entry(uri: str, indexed_at: str, **overrides: Any) -> dict[str, Any]:
    """A feed view entry in wire (camelCase) form."""
    entry: dict[str, Any] = {
        "uri": uri,
        "author": {"did": "did:example:alice", "name": "alice.test", "displayName": "Alice"},
        "record": {"text": f"post {uri}"},
        "replyCount": 1,
        "repostCount": 2,
        "likeCount": 3,
        "indexedAt": indexed_at,
        "myState": {"hasLiked": False, "hasReposted": False},
    }
    entry.update(overrides)
    return entry


@pytest.fixture
def mock_env():
    """Set a fake access token in the environment."""
    env = {"SKYFEED_ACCESS_TOKEN": "test-access-token"}
    with patch.dict("os.environ", env):
        yield env


@pytest.fixture
def no_backoff(monkeypatch):
    """Retry immediately instead of sleeping between attempts."""
    monkeypatch.setattr(FeedGateway._request_with_retry.retry, "wait", wait_none())


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return GatewayConfig(
        base_url="https://feeds.example.test/",
        actor="alice.test",
        read_rate_limit_per_second=100.0,
        write_rate_limit_per_second=100.0,
    )


@pytest.fixture
def feed_page() -> dict[str, Any]:
    return {
        "feed": [
            _feed_entry("at://alice.test/post/3", "2024-05-03T10:00:00Z"),
            _feed_entry(
                "at://bob.test/post/1",
                "2024-05-02T09:00:00Z",
                repostedBy={"did": "did:example:alice", "name": "alice.test"},
                embed={
                    "type": "external",
                    "uri": "https://example.org/article",
                    "title": "An article",
                    "description": "Worth reading",
                },
            ),
        ]
    }


@pytest.fixture
def feed_entry():
    """Factory for wire-form feed entries."""
    return _feed_entry


@pytest.fixture
def make_gateway(gateway_config, mock_env):
    """Factory: a FeedGateway whose HTTP client talks to a MockTransport.

    Tests are responsible for `await gateway.close()`.
    """

    def _make(
        responses: list[httpx.Response | Exception],
        config: GatewayConfig | None = None,
    ) -> tuple[FeedGateway, MockTransport]:
        gateway = FeedGateway(config or gateway_config)
        transport = MockTransport(responses=responses)
        gateway._client = httpx.AsyncClient(
            transport=transport, base_url=gateway.config.base_url
        )
        return gateway, transport

    return _make
