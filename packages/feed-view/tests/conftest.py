"""Test fixtures for the feed-view controller and items.

Provides a FakeGateway that mirrors FeedGateway's async interface, recording
every call and serving queued pages. Each queued entry is a list of posts,
an exception to raise, or an asyncio.Event-gated page for tests that need a
query to stay in flight while other calls arrive.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from skyfeed_shared.feed_models import FeedPost, FeedViewParams, FeedViewResponse


def make_post(uri: str, indexed_at: str, **overrides: Any) -> FeedPost:
    data: dict[str, Any] = {
        "uri": uri,
        "author": {"did": "did:example:alice", "name": "alice.test"},
        "record": {"text": f"post {uri}"},
        "indexed_at": indexed_at,
        "reply_count": 0,
        "repost_count": 0,
        "like_count": 0,
        "my_state": {"has_liked": False, "has_reposted": False},
    }
    data.update(overrides)
    return FeedPost.model_validate(data)


class GatedPage:
    """A page that is only served once `release()` is called."""

    def __init__(self, posts: list[FeedPost] | Exception) -> None:
        self.posts = posts
        self.started = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def wait(self) -> list[FeedPost] | Exception:
        self.started.set()
        await self._gate.wait()
        return self.posts


class FakeGateway:
    """In-memory gateway that records calls and serves queued pages."""

    def __init__(self) -> None:
        self.pages: list[list[FeedPost] | Exception | GatedPage] = []
        self.view_calls: list[FeedViewParams] = []
        self.write_calls: list[tuple[str, str, str]] = []
        self.write_error: Exception | None = None
        self.active_views = 0
        self.max_active_views = 0

    def queue(self, *pages: list[FeedPost] | Exception | GatedPage) -> None:
        self.pages.extend(pages)

    async def view(self, params: FeedViewParams) -> FeedViewResponse:
        self.view_calls.append(params)
        self.active_views += 1
        self.max_active_views = max(self.max_active_views, self.active_views)
        try:
            entry = self.pages.pop(0) if self.pages else []
            if isinstance(entry, GatedPage):
                entry = await entry.wait()
            else:
                await asyncio.sleep(0)
            if isinstance(entry, Exception):
                raise entry
            return FeedViewResponse(feed=entry)
        finally:
            self.active_views -= 1

    async def _write(self, call: str, actor: str, uri: str) -> None:
        await asyncio.sleep(0)
        if self.write_error is not None:
            raise self.write_error
        self.write_calls.append((call, actor, uri))

    async def like(self, actor: str, uri: str) -> None:
        await self._write("like", actor, uri)

    async def unlike(self, actor: str, uri: str) -> None:
        await self._write("unlike", actor, uri)

    async def repost(self, actor: str, uri: str) -> None:
        await self._write("repost", actor, uri)

    async def unrepost(self, actor: str, uri: str) -> None:
        await self._write("unrepost", actor, uri)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def post():
    """Factory for FeedPost instances."""
    return make_post


@pytest.fixture
def gated():
    """Factory for GatedPage instances."""
    return GatedPage
