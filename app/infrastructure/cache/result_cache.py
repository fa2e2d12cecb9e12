"""Redis-backed cache of recognition outcomes keyed by image content."""
import hashlib
import json
from typing import Any, Dict, List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

CACHE_NAMESPACE = "recognition"
UNMATCHED_KEYS = "unrecognized_keys"


def content_hash(image_bytes: bytes) -> str:
    """SHA-256 hex digest of raw image bytes."""
    return hashlib.sha256(image_bytes).hexdigest()


class ResultCache:
    """Content-addressed cache for recognition payloads.

    Every operation is best-effort: backend failures are logged and reported
    as a miss / ``False`` so that the cache can never fail a request.

    Keys are ``recognition:<sha256>``. Keys of negative outcomes are also
    tracked in the ``unrecognized_keys`` set so they can be dropped when a new
    face is enrolled, since a previously unknown image may now match.

    Example:
        ```python
        cache = ResultCache(Redis.from_url(settings.REDIS_URL, decode_responses=True))
        key = cache.key_for(image_bytes)
        payload = await cache.get(key)
        ```
    """

    def __init__(self, client: Redis, ttl_seconds: Optional[int] = None) -> None:
        """Initialize the cache.

        Args:
            client: Redis client created with ``decode_responses=True``
            ttl_seconds: Expiry of cache entries (defaults to settings)
        """
        self._client = client
        self.ttl_seconds = ttl_seconds or settings.CACHE_TTL_SECONDS

    @staticmethod
    def key_for(image_bytes: bytes) -> str:
        """Cache key for the given image content."""
        return f"{CACHE_NAMESPACE}:{content_hash(image_bytes)}"

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the cached payload, or None on a miss or backend failure."""
        try:
            value = await self._client.get(key)
        except RedisError as e:
            logger.warning("Cache get failed", key=key, error=str(e))
            return None

        if value is None:
            return None

        try:
            return json.loads(value)
        except ValueError as e:
            logger.warning("Discarding undecodable cache entry", key=key, error=str(e))
            return None

    async def set(
        self,
        key: str,
        payload: Dict[str, Any],
        ttl_seconds: Optional[int] = None,
    ) -> bool:
        """Store a payload with an expiry. Returns False if the write failed."""
        ttl = ttl_seconds or self.ttl_seconds
        try:
            await self._client.set(key, json.dumps(payload), ex=ttl)
        except (RedisError, TypeError, ValueError) as e:
            logger.warning("Cache set failed", key=key, error=str(e))
            return False

        logger.debug("Cache set", key=key, ttl=ttl)
        return True

    async def delete(self, *keys: str) -> bool:
        """Delete entries. Returns False if the delete failed."""
        if not keys:
            return True
        try:
            await self._client.delete(*keys)
        except RedisError as e:
            logger.warning("Cache delete failed", keys=len(keys), error=str(e))
            return False
        return True

    async def track_unmatched(self, key: str) -> bool:
        """Remember that ``key`` holds a "not recognized" outcome."""
        try:
            await self._client.sadd(UNMATCHED_KEYS, key)
        except RedisError as e:
            logger.warning("Failed to track unmatched key", key=key, error=str(e))
            return False
        return True

    async def unmatched_keys(self) -> List[str]:
        """Members of the unmatched key set (empty on failure)."""
        try:
            members = await self._client.smembers(UNMATCHED_KEYS)
        except RedisError as e:
            logger.warning("Failed to read unmatched keys", error=str(e))
            return []
        return sorted(members)

    async def invalidate_unmatched(self) -> int:
        """Drop every tracked negative outcome and untrack it.

        The tracked members are read first. The entry deletes and the SREM of
        exactly those members then run in one MULTI/EXEC transaction, so keys
        tracked after the read stay tracked. An empty set is a no-op.

        Returns:
            int: Number of cache entries invalidated (0 on failure)
        """
        keys = await self.unmatched_keys()
        if not keys:
            return 0

        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(*keys)
                pipe.srem(UNMATCHED_KEYS, *keys)
                await pipe.execute()
        except RedisError as e:
            logger.warning(
                "Failed to invalidate unmatched cache entries",
                keys=len(keys),
                error=str(e)
            )
            return 0

        logger.info("Invalidated unmatched cache entries", keys=len(keys))
        return len(keys)

    async def ping(self) -> bool:
        """Whether the backend answers."""
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()
