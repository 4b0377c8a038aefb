"""Pydantic base models shared across packages.

These are the contract types that flow between the feed-view controller and
whoever drives it. Using Pydantic gives us validation at the package
boundaries: a bad page from the gateway fails fast with a clear error rather
than leaking half-parsed data into the cached feed.
"""

from pydantic import BaseModel


class PlatformResult(BaseModel):
    """Standard result envelope returned by feed operations.

    Every controller operation returns this (or a subclass) so callers have a
    consistent way to check success/failure without catching exceptions for
    expected failures such as a dropped connection.
    """

    success: bool
    message: str
