"""Feed view wire models — the contract between the gateway and the controller.

The feed view endpoint returns one page of entries, newest first. Each entry
carries the post payload plus the server's current counters and the viewer's
like/repost state.

Design choices:
  - Field names are camelCase on the wire and snake_case in Python. Every
    model shares `WireModel.model_config` so both spellings parse.
  - `record` stays a plain dict. The controller never interprets post bodies,
    so we validate it only as a mapping.
  - Embeds are a closed set keyed by their `type` tag. Unrecognized tags parse
    as UnknownEmbed instead of failing the whole page.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models that cross the HTTP boundary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FeedUser(WireModel):
    """An author or resharer as shown in the feed."""

    did: str
    name: str
    display_name: str | None = None


class ViewerState(WireModel):
    """Per-viewer interaction state for one entry. Mutable."""

    has_liked: bool = False
    has_reposted: bool = False


# ============================================================================
# Embeds
# ============================================================================


class RecordEmbed(WireModel):
    """A quoted record embedded in a post."""

    type: Literal["record"] = "record"
    author: FeedUser
    record: dict[str, Any] = {}


class ExternalEmbed(WireModel):
    """A link card for an external URL."""

    type: Literal["external"] = "external"
    uri: str
    title: str = ""
    description: str = ""
    image_uri: str | None = None


class UnknownEmbed(WireModel):
    """Any embed tag we don't render. Extra fields are kept as-is."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    type: str


def _embed_tag(value: Any) -> str:
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if tag in ("record", "external"):
        return tag
    return "unknown"


Embed = Annotated[
    Union[
        Annotated[RecordEmbed, Tag("record")],
        Annotated[ExternalEmbed, Tag("external")],
        Annotated[UnknownEmbed, Tag("unknown")],
    ],
    Discriminator(_embed_tag),
]


# ============================================================================
# Feed entries and pages
# ============================================================================


class FeedPost(WireModel):
    """One entry of a feed view page, as returned by the server.

    For reposts, `uri` is the original post's URI and `indexed_at` is the time
    of the repost event, so `(uri, indexed_at)` is what identifies an entry.
    """

    uri: str
    author: FeedUser
    reposted_by: FeedUser | None = None
    record: dict[str, Any] = {}
    embed: Embed | None = None
    reply_count: int = Field(default=0, ge=0)
    repost_count: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)
    indexed_at: str
    my_state: ViewerState | None = None

    @property
    def content_key(self) -> tuple[str, str]:
        return (self.uri, self.indexed_at)


class FeedViewParams(WireModel):
    """Query parameters for the feed view.

    `before` is the pagination cursor: only entries indexed strictly before it
    are returned. Any extra keys (author filters and the like) are kept and
    sent along unchanged.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    limit: int | None = Field(default=None, ge=1)
    before: str | None = None

    def with_page(self, before: str | None = None, limit: int | None = None) -> FeedViewParams:
        """Copy these params with a new cursor and, if given, a new limit."""
        update: dict[str, Any] = {"before": before}
        if limit is not None:
            update["limit"] = limit
        return self.model_copy(update=update)

    def to_query(self) -> dict[str, Any]:
        """Serialize to query parameters: wire names, no unset cursor or limit."""
        return self.model_dump(by_alias=True, exclude_none=True)


class FeedViewResponse(WireModel):
    """One page of the feed view, ordered newest first."""

    feed: list[FeedPost] = []
