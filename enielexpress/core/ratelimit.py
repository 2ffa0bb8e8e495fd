import logging
from redis import Redis, RedisError
from enielexpress.core.config import settings

logger = logging.getLogger(__name__)

def get_client() -> Redis:
    return Redis.from_url(settings.REDIS_URL, decode_responses=True)

def limit_key(scope: str, source: str) -> str:
    return f"ratelimit:{scope}:{source}"

class RateLimiter:
    """Fixed-window counter: at most ``limit`` hits per key per ``window`` seconds."""

    def __init__(self, client: Redis, limit: int, window: int):
        self.client = client
        self.limit = limit
        self.window = window

    def hit(self, key: str) -> bool:
        try:
            count = self.client.incr(key)
            if count == 1:
                self.client.expire(key, self.window)
        except RedisError:
            # fail open so auth keeps working while Redis is down
            logger.warning("Rate limiter unavailable, allowing request for %s", key)
            return True
        return count <= self.limit
