"""Feed view controller — the cached, paginated feed and its three operations.

  setup / refresh — replace the feed with the newest page
  load_more       — append the page after the current last item
  update          — re-fetch enough pages to refresh every cached item in
                    place, without changing the feed's length or order

Concurrency model (single-threaded asyncio):

  - Single-flight per operation kind. A second call to an operation that is
    already in flight joins the pending task and gets the same result. No
    second query is issued.
  - Barrier across kinds. One asyncio.Lock is held for the whole run of any
    operation, so setup, load_more and update never overlap. asyncio.Lock
    wakes waiters in FIFO order, so operations run in call order.

Failures inside an operation never raise. They are recorded in `error` and
returned as an unsuccessful OperationResult, and the feed keeps its last good
contents.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Protocol

from skyfeed_shared.config_models import DEFAULT_PAGE_CAP, FeedViewConfig
from skyfeed_shared.feed_models import FeedPost, FeedViewParams, FeedViewResponse
from skyfeed_shared.models import PlatformResult

from skyfeed_feed_view.item import FeedViewItem, InteractionSource

logger = logging.getLogger(__name__)


class FeedSource(Protocol):
    """The read half of the gateway: one page of the feed view."""

    async def view(self, params: FeedViewParams) -> FeedViewResponse: ...


class FeedGatewayLike(FeedSource, InteractionSource, Protocol):
    """Everything the controller and its items need from the gateway."""


class FeedOperation(StrEnum):
    LOAD = "load"
    LOAD_MORE = "load_more"
    UPDATE = "update"


class Lifecycle(StrEnum):
    IDLE = "idle"
    LOADING = "loading"


class OperationResult(PlatformResult):
    """Returned by every controller operation once it has settled."""

    operation: FeedOperation
    item_count: int = 0
    fetched: int = 0


Listener = Callable[["FeedViewController"], None]


class FeedViewController:
    """Owns the ordered feed and coordinates the operations that change it.

    State is read directly from the attributes and properties; presentation
    code that wants push-style updates registers a listener with subscribe().
    """

    def __init__(
        self,
        gateway: FeedGatewayLike,
        params: FeedViewParams | dict | None = None,
        *,
        actor: str = "",
        page_cap: int = DEFAULT_PAGE_CAP,
        settle_delay: float = 0.0,
    ) -> None:
        if page_cap < 1:
            raise ValueError(f"page_cap must be at least 1, got {page_cap}")
        self.gateway = gateway
        self.params = FeedViewParams.model_validate(params or {})
        self.actor = actor
        self.page_cap = page_cap
        self.settle_delay = settle_delay

        self.lifecycle = Lifecycle.IDLE
        self.is_refreshing = False
        self.has_loaded = False
        self.error = ""
        self.feed: list[FeedViewItem] = []

        self._inflight: dict[FeedOperation, asyncio.Task[OperationResult]] = {}
        self._barrier = asyncio.Lock()
        self._listeners: list[Listener] = []

    @classmethod
    def from_config(
        cls, gateway: FeedGatewayLike, config: FeedViewConfig, *, actor: str = ""
    ) -> FeedViewController:
        return cls(
            gateway,
            config.params,
            actor=actor,
            page_cap=config.page_cap,
            settle_delay=config.settle_delay,
        )

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def has_content(self) -> bool:
        return len(self.feed) != 0

    @property
    def has_error(self) -> bool:
        return self.error != ""

    @property
    def is_empty(self) -> bool:
        return self.has_loaded and not self.has_content

    @property
    def is_loading(self) -> bool:
        return self.lifecycle is Lifecycle.LOADING

    @property
    def load_more_cursor(self) -> str | None:
        if self.has_content:
            return self.feed[-1].indexed_at
        return None

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every state change.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception(f"Feed listener {listener!r} failed")

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def setup(self, is_refreshing: bool = False) -> OperationResult:
        """Load the newest page, replacing whatever is cached."""
        return await self._run(FeedOperation.LOAD, lambda: self._initial_load(is_refreshing))

    async def refresh(self) -> OperationResult:
        """Reset and load. Same as setup(), flagged as a refresh for observers."""
        return await self.setup(is_refreshing=True)

    async def load_more(self) -> OperationResult:
        """Append the page that follows the current last item."""
        return await self._run(FeedOperation.LOAD_MORE, self._load_more)

    async def update(self) -> OperationResult:
        """Refresh every cached item in place, keeping length and order."""
        return await self._run(FeedOperation.UPDATE, self._update)

    # ------------------------------------------------------------------
    # Single-flight + barrier
    # ------------------------------------------------------------------

    async def _run(
        self,
        operation: FeedOperation,
        body: Callable[[], Awaitable[OperationResult]],
    ) -> OperationResult:
        task = self._inflight.get(operation)
        if task is None or task.done():
            task = asyncio.ensure_future(self._exclusive(body))
            self._inflight[operation] = task
            task.add_done_callback(lambda done: self._clear_inflight(operation, done))
        else:
            logger.debug(f"Joining in-flight {operation}")
        # A caller giving up on its own await must not cancel the shared run.
        return await asyncio.shield(task)

    async def _exclusive(self, body: Callable[[], Awaitable[OperationResult]]) -> OperationResult:
        async with self._barrier:
            return await body()

    def _clear_inflight(self, operation: FeedOperation, task: asyncio.Task[OperationResult]) -> None:
        if self._inflight.get(operation) is task:
            del self._inflight[operation]

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _set_loading(self, is_refreshing: bool = False) -> None:
        self.lifecycle = Lifecycle.LOADING
        self.is_refreshing = is_refreshing
        self.error = ""
        self._notify()

    def _set_idle(self, error: str = "") -> None:
        self.lifecycle = Lifecycle.IDLE
        self.is_refreshing = False
        self.has_loaded = True
        self.error = error
        self._notify()

    async def _settle(self) -> None:
        if self.settle_delay > 0:
            await asyncio.sleep(self.settle_delay)

    def _result(self, operation: FeedOperation, fetched: int, message: str) -> OperationResult:
        return OperationResult(
            success=not self.has_error,
            message=self.error or message,
            operation=operation,
            item_count=len(self.feed),
            fetched=fetched,
        )

    # ------------------------------------------------------------------
    # Operation bodies
    # ------------------------------------------------------------------

    async def _initial_load(self, is_refreshing: bool) -> OperationResult:
        self._set_loading(is_refreshing)
        await self._settle()
        fetched = 0
        try:
            page = await self.gateway.view(self.params)
            fetched = len(page.feed)
            self._replace_all(page.feed)
            self._set_idle()
        except Exception as e:
            logger.warning(f"Feed load failed: {e}")
            self._set_idle(f"Failed to load feed: {e}")
        return self._result(FeedOperation.LOAD, fetched, f"Loaded {fetched} items")

    async def _load_more(self) -> OperationResult:
        self._set_loading()
        await self._settle()
        fetched = 0
        try:
            page = await self.gateway.view(self.params.with_page(before=self.load_more_cursor))
            fetched = len(page.feed)
            self._append_all(page.feed)
            self._set_idle()
        except Exception as e:
            logger.warning(f"Feed load_more failed: {e}")
            self._set_idle(f"Failed to load feed: {e}")
        return self._result(FeedOperation.LOAD_MORE, fetched, f"Appended {fetched} items")

    async def _update(self) -> OperationResult:
        self._set_loading()
        await self._settle()
        remaining = len(self.feed)
        cursor: str | None = None
        fetched = 0
        try:
            while remaining > 0:
                params = self.params.with_page(before=cursor, limit=min(remaining, self.page_cap))
                page = await self.gateway.view(params)
                if not page.feed:
                    # Source ran dry or shrank under us; nothing left to match.
                    logger.debug(f"Feed update stopped early with {remaining} unrefreshed")
                    break
                self._update_all(page.feed)
                fetched += len(page.feed)
                remaining -= len(page.feed)
                cursor = page.feed[-1].indexed_at
            self._set_idle()
        except Exception as e:
            logger.warning(f"Feed update failed after {fetched} entries: {e}")
            self._set_idle(f"Failed to update feed: {e}")
        return self._result(FeedOperation.UPDATE, fetched, f"Refreshed from {fetched} entries")

    # ------------------------------------------------------------------
    # Folding pages into the feed
    # ------------------------------------------------------------------

    def _replace_all(self, posts: list[FeedPost]) -> None:
        self.feed = []
        self._append_all(posts)

    def _append_all(self, posts: list[FeedPost]) -> None:
        counter = len(self.feed)
        for post in posts:
            self.feed.append(
                FeedViewItem.from_post(f"item-{counter}", post, self.gateway, self.actor)
            )
            counter += 1
        self._notify()

    def _update_all(self, posts: list[FeedPost]) -> None:
        # Match on (uri, indexed_at), never uri alone: a repost carries the
        # original post's uri, and indexed_at tells repost events apart.
        by_key = {item.content_key: item for item in self.feed}
        for post in posts:
            existing = by_key.get(post.content_key)
            if existing is not None:
                existing.copy_from(post)
        self._notify()
