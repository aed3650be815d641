import json
import redis
import structlog
from typing import Any, Optional
from ..config import Settings, settings
from .metrics import content_cache_total

logger = structlog.get_logger()

_redis_client: Optional[redis.Redis] = None

def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    return _redis_client


class ContentListCache:
    """Caches serialized content lists per type filter.

    Keys embed a generation number; a write bumps the generation instead of
    scanning for keys, and stale entries expire through their TTL. Redis
    errors fall through to the database.
    """

    GENERATION_KEY = "content:list:generation"

    def __init__(self, config: Settings = settings, client_factory=get_redis):
        self.enabled = config.CACHE_ENABLED
        self.ttl = config.CACHE_TTL
        self.client_factory = client_factory

    def _key(self, client: redis.Redis, content_type: str | None) -> str:
        generation = client.get(self.GENERATION_KEY) or "0"
        return f"content:list:{generation}:{content_type or 'all'}"

    def get(self, content_type: str | None) -> Optional[list[dict[str, Any]]]:
        if not self.enabled:
            return None
        try:
            client = self.client_factory()
            value = client.get(self._key(client, content_type))
        except redis.RedisError as e:
            logger.warning("content_cache_unavailable", op="get", error=str(e))
            content_cache_total.labels(result="error").inc()
            return None
        if value is None:
            content_cache_total.labels(result="miss").inc()
            return None
        content_cache_total.labels(result="hit").inc()
        return json.loads(value)

    def put(self, content_type: str | None, items: list[dict[str, Any]]) -> bool:
        if not self.enabled:
            return False
        try:
            client = self.client_factory()
            client.setex(self._key(client, content_type), self.ttl,
                         json.dumps(items, ensure_ascii=False, default=str))
            return True
        except redis.RedisError as e:
            logger.warning("content_cache_unavailable", op="put", error=str(e))
            return False

    def invalidate(self) -> bool:
        if not self.enabled:
            return False
        try:
            self.client_factory().incr(self.GENERATION_KEY)
            return True
        except redis.RedisError as e:
            logger.warning("content_cache_unavailable", op="invalidate", error=str(e))
            return False
