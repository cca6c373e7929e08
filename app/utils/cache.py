"""
Redis utility: JSON cache for read-mostly data and short-lived start locks
"""
import redis
import json
import logging
import uuid
from typing import Optional, Any
from app.config import settings

logger = logging.getLogger(__name__)

TOPICS_CACHE_KEY = "topics:all"

# Delete the lock only if we still own it
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class CacheService:
    """Redis-backed cache; every operation degrades to a no-op when Redis is unavailable"""

    def __init__(self):
        self.redis_client = None
        if not settings.CACHE_ENABLED:
            logger.info("Caching disabled by configuration")
            return

        try:
            self.redis_client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    def start_lock_key(self, user_id: int, topic_id: int) -> str:
        return f"quiz:start:{user_id}:{topic_id}"

    def get(self, key: str) -> Optional[Any]:
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.info(f"Cache hit: {key}")
                return json.loads(value)
            logger.info(f"Cache miss: {key}")
            return None
        except redis.RedisError as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: int) -> bool:
        """Store a JSON-serializable value with a TTL in seconds"""
        if not self.redis_client:
            return False

        try:
            self.redis_client.setex(key, ttl, json.dumps(value))
            logger.info(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except redis.RedisError as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def acquire_lock(self, key: str, ttl: int) -> Optional[str]:
        """
        Try to take a lock with SET NX

        Returns:
            An owner token when acquired (or when Redis is unavailable, so the
            caller proceeds and the database constraint decides), None when
            another caller holds the lock.
        """
        token = uuid.uuid4().hex
        if not self.redis_client:
            return token

        try:
            if self.redis_client.set(key, token, nx=True, ex=ttl):
                return token
            logger.info(f"Lock busy: {key}")
            return None
        except redis.RedisError as e:
            logger.error(f"Lock acquire error: {str(e)}")
            return token

    def release_lock(self, key: str, token: str) -> None:
        if not self.redis_client:
            return

        try:
            self.redis_client.eval(_RELEASE_SCRIPT, 1, key, token)
        except redis.RedisError as e:
            logger.error(f"Lock release error: {str(e)}")


# Global instance
cache_service = CacheService()
