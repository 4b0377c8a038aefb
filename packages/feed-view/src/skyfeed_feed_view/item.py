"""Feed view items — one cached feed entry plus its like/repost toggles.

An item is created by the controller when a page is folded into the feed and
refreshed in place by FeedViewController.update(). Its `key` is a display key
for list rendering only; reconciliation always goes through `content_key`.

The toggles talk to the service directly and are not coordinated with the
controller's operations. An update() that lands after a toggle may overwrite
the toggled counters with the server's older snapshot; the next update()
brings them back in line.
"""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import BaseModel, Field, PrivateAttr
from skyfeed_shared.feed_models import Embed, FeedPost, FeedUser, ViewerState


class InteractionSource(Protocol):
    """The write half of the gateway: like/repost calls for an actor."""

    async def like(self, actor: str, uri: str) -> None: ...

    async def unlike(self, actor: str, uri: str) -> None: ...

    async def repost(self, actor: str, uri: str) -> None: ...

    async def unrepost(self, actor: str, uri: str) -> None: ...


class FeedViewItem(BaseModel):
    """A feed entry as held by the controller. Mutable."""

    key: str
    uri: str
    author: FeedUser
    reposted_by: FeedUser | None = None
    record: dict[str, Any] = {}
    embed: Embed | None = None
    reply_count: int = 0
    repost_count: int = 0
    like_count: int = 0
    indexed_at: str
    my_state: ViewerState = Field(default_factory=ViewerState)

    _interactions: InteractionSource | None = PrivateAttr(default=None)
    _actor: str = PrivateAttr(default="")

    @classmethod
    def from_post(
        cls,
        key: str,
        post: FeedPost,
        interactions: InteractionSource | None = None,
        actor: str = "",
    ) -> FeedViewItem:
        item = cls(
            key=key,
            uri=post.uri,
            author=post.author,
            indexed_at=post.indexed_at,
        )
        item._interactions = interactions
        item._actor = actor
        item.copy_from(post)
        return item

    @property
    def content_key(self) -> tuple[str, str]:
        return (self.uri, self.indexed_at)

    def copy_from(self, post: FeedPost) -> None:
        """Overwrite the data fields from a freshly fetched post.

        `key` is never touched. The viewer state is only replaced when the
        post carries one.
        """
        self.uri = post.uri
        self.author = post.author
        self.reposted_by = post.reposted_by
        self.record = post.record
        self.embed = post.embed
        self.reply_count = post.reply_count
        self.repost_count = post.repost_count
        self.like_count = post.like_count
        self.indexed_at = post.indexed_at
        if post.my_state is not None:
            self.my_state.has_liked = post.my_state.has_liked
            self.my_state.has_reposted = post.my_state.has_reposted

    async def toggle_like(self) -> None:
        """Like or unlike, depending on the current viewer state.

        Local state changes only after the remote call succeeds. A failure
        propagates to the caller with nothing changed.
        """
        interactions = self._require_interactions()
        if self.my_state.has_liked:
            await interactions.unlike(self._actor, self.uri)
            self.like_count = max(self.like_count - 1, 0)
            self.my_state.has_liked = False
        else:
            await interactions.like(self._actor, self.uri)
            self.like_count += 1
            self.my_state.has_liked = True

    async def toggle_repost(self) -> None:
        """Repost or undo the repost, depending on the current viewer state."""
        interactions = self._require_interactions()
        if self.my_state.has_reposted:
            await interactions.unrepost(self._actor, self.uri)
            self.repost_count = max(self.repost_count - 1, 0)
            self.my_state.has_reposted = False
        else:
            await interactions.repost(self._actor, self.uri)
            self.repost_count += 1
            self.my_state.has_reposted = True

    def _require_interactions(self) -> InteractionSource:
        if self._interactions is None:
            raise RuntimeError(f"Item {self.key} is not attached to a feed gateway")
        return self._interactions
