"""Controller integration tests against a real feed service.

SKIPPED unless SKYFEED_BASE_URL is set. Only setup/load_more/update are
exercised; no likes or reposts are created.

Run with: uv run pytest packages/feed-view/tests/test_integration.py -v
"""

import os

import pytest
from skyfeed_feed_view.controller import FeedViewController
from skyfeed_gateway.client import FeedGateway
from skyfeed_shared.config_models import GatewayConfig

requires_service = pytest.mark.skipif(
    not os.environ.get("SKYFEED_BASE_URL"),
    reason="SKYFEED_BASE_URL not set",
)


@requires_service
class TestControllerIntegration:
    async def test_setup_and_update_keep_item_keys(self):
        config = GatewayConfig.from_env()
        async with FeedGateway(config) as gateway:
            controller = FeedViewController(gateway, {"limit": 5}, actor=config.actor)
            result = await controller.setup()
            assert result.success, f"Setup failed: {result.message}"

            before = [item.key for item in controller.feed]
            result = await controller.update()
            assert result.success, f"Update failed: {result.message}"
            assert [item.key for item in controller.feed] == before

    async def test_load_more_appends_after_setup(self):
        config = GatewayConfig.from_env()
        async with FeedGateway(config) as gateway:
            controller = FeedViewController(gateway, {"limit": 2}, actor=config.actor)
            await controller.setup()
            first_keys = [item.key for item in controller.feed]

            result = await controller.load_more()

            assert result.success, f"Load more failed: {result.message}"
            assert [item.key for item in controller.feed][: len(first_keys)] == first_keys
