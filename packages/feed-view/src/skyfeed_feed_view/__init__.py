"""Paginated feed view state: the cached feed, its operations and items."""

from skyfeed_feed_view.controller import (
    FeedOperation,
    FeedViewController,
    Lifecycle,
    OperationResult,
)
from skyfeed_feed_view.item import FeedViewItem

__all__ = [
    "FeedOperation",
    "FeedViewController",
    "FeedViewItem",
    "Lifecycle",
    "OperationResult",
]
