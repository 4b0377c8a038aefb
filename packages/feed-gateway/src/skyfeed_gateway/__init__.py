"""HTTP gateway to the remote feed service.

FeedGateway is the one class callers need: it serves feed view pages and the
like/repost write calls, with rate limiting, retries and a request timeout.
"""

from skyfeed_gateway.client import FeedGateway, GatewayError

__all__ = ["FeedGateway", "GatewayError"]
