"""Configuration models for the gateway and the feed-view controller.

Both models are plain Pydantic objects that can be built directly (tests,
embedding apps) or from the environment via `from_env()` (scripts, local dev
with a `.env` file).

Design choices:
  - GatewayConfig.auth_env_var names an environment variable, not the token
    itself. The gateway resolves it on first use so tokens never end up in
    logs or reprs of the config.
  - Reads and writes get separate rate limits. The feed service meters
    page fetches and like/repost calls independently.
  - Method names are configurable because different deployments expose the
    feed view under different names.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

from skyfeed_shared.feed_models import FeedViewParams

DEFAULT_PAGE_CAP = 100


class GatewayConfig(BaseModel):
    """Describes how to reach the remote feed service."""

    base_url: str
    actor: str = ""
    auth_env_var: str | None = "SKYFEED_ACCESS_TOKEN"
    timeout: float = 30.0
    read_rate_limit_per_second: float = Field(default=5.0, gt=0)
    write_rate_limit_per_second: float = Field(default=1.0, gt=0)
    feed_view_method: str = "blueskyweb.xyz:FeedView"
    like_method: str = "blueskyweb.xyz:Like"
    unlike_method: str = "blueskyweb.xyz:Unlike"
    repost_method: str = "blueskyweb.xyz:Repost"
    unrepost_method: str = "blueskyweb.xyz:Unrepost"

    @classmethod
    def from_env(cls) -> GatewayConfig:
        """Build a config from SKYFEED_* environment variables.

        SKYFEED_BASE_URL is required; everything else falls back to defaults.
        """
        base_url = os.environ.get("SKYFEED_BASE_URL", "")
        if not base_url:
            raise ValueError(
                "SKYFEED_BASE_URL is not set. Point it at the feed service, "
                "e.g. https://pds.example.com/"
            )
        values: dict[str, str | float | None] = {"base_url": base_url}
        if actor := os.environ.get("SKYFEED_ACTOR"):
            values["actor"] = actor
        if "SKYFEED_AUTH_ENV_VAR" in os.environ:
            values["auth_env_var"] = os.environ["SKYFEED_AUTH_ENV_VAR"] or None
        if timeout := os.environ.get("SKYFEED_TIMEOUT"):
            values["timeout"] = float(timeout)
        if rate := os.environ.get("SKYFEED_READ_RATE_LIMIT"):
            values["read_rate_limit_per_second"] = float(rate)
        if rate := os.environ.get("SKYFEED_WRITE_RATE_LIMIT"):
            values["write_rate_limit_per_second"] = float(rate)
        return cls(**values)


class FeedViewConfig(BaseModel):
    """Tuning for one feed-view controller."""

    params: FeedViewParams = FeedViewParams()
    page_cap: int = Field(default=DEFAULT_PAGE_CAP, ge=1)
    settle_delay: float = Field(default=0.0, ge=0.0)

    @classmethod
    def from_env(cls) -> FeedViewConfig:
        """Build a config from SKYFEED_PAGE_CAP / SKYFEED_SETTLE_DELAY."""
        values: dict[str, int | float] = {}
        if page_cap := os.environ.get("SKYFEED_PAGE_CAP"):
            values["page_cap"] = int(page_cap)
        if settle_delay := os.environ.get("SKYFEED_SETTLE_DELAY"):
            values["settle_delay"] = float(settle_delay)
        return cls(**values)
