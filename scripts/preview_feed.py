"""Feed preview script.

Loads a feed view against a real service, pages forward, optionally refreshes
everything in place, and logs what the controller ends up holding. Useful for
checking credentials and pagination against a new deployment.

Prerequisites:
  - SKYFEED_BASE_URL (and the token variable named by SKYFEED_AUTH_ENV_VAR,
    SKYFEED_ACCESS_TOKEN by default) in the environment or in .env
  - Dependencies installed: `uv sync`

Usage:
  uv run python scripts/preview_feed.py --pages 2 --update
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from skyfeed_feed_view.controller import FeedViewController
from skyfeed_gateway.client import FeedGateway
from skyfeed_shared.config_models import FeedViewConfig, GatewayConfig

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

load_dotenv(Path(__file__).resolve().parent.parent / ".env")


async def main(pages: int, update: bool, limit: int | None) -> int:
    """Run setup, `pages` load_more calls and an optional update."""
    gateway_config = GatewayConfig.from_env()
    view_config = FeedViewConfig.from_env()
    if limit:
        view_config.params.limit = limit

    async with FeedGateway(gateway_config) as gateway:
        controller = FeedViewController.from_config(
            gateway, view_config, actor=gateway_config.actor
        )

        result = await controller.setup()
        logger.info(f"setup: {result.message}")

        for _ in range(pages):
            if controller.has_error:
                break
            result = await controller.load_more()
            logger.info(f"load_more: {result.message}")

        if update and not controller.has_error:
            result = await controller.update()
            logger.info(f"update: {result.message}")

        for item in controller.feed:
            reposter = f" (reposted by @{item.reposted_by.name})" if item.reposted_by else ""
            logger.info(
                f"{item.key} {item.indexed_at} @{item.author.name}{reposter} "
                f"replies={item.reply_count} reposts={item.repost_count} likes={item.like_count}"
            )

        logger.info(
            f"Feed holds {len(controller.feed)} items "
            f"(gateway made {gateway.request_count} requests)"
        )
        if controller.has_error:
            logger.error(controller.error)
            return 1
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Preview a feed view")
    parser.add_argument("--pages", type=int, default=1, help="load_more calls after setup")
    parser.add_argument("--update", action="store_true", help="refresh all items in place")
    parser.add_argument("--limit", type=int, default=None, help="page size for each query")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.pages, args.update, args.limit)))
