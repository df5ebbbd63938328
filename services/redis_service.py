import json
import logging
import redis.asyncio as redis
from typing import Any, Dict, Optional
from config import Config

logger = logging.getLogger(__name__)


class RedisService:
    """Key-value store for quiz engine snapshots, one per chat."""

    def __init__(self, url: Optional[str] = None, ttl: Optional[int] = None):
        self.url = url or Config.REDIS_URL
        self.ttl = ttl or Config.SESSION_TTL
        self.redis_client: Optional[redis.Redis] = None

    async def connect(self):
        """Connects to Redis."""
        try:
            self.redis_client = redis.from_url(
                self.url,
                decode_responses=False  # values are JSON bytes
            )
            await self.redis_client.ping()
            logger.info("Connected to Redis")
        except Exception as e:
            logger.error(f"Redis connection failed: {e}")
            # Keep running without Redis; snapshots then live only in FSM storage
            self.redis_client = None

    async def disconnect(self):
        """Closes the Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()

    def _get_key(self, chat_id: int) -> str:
        return f"quiz_session:{chat_id}"

    async def get_session(self, chat_id: int) -> Optional[Dict[str, Any]]:
        """Returns the stored engine snapshot for a chat."""
        if not self.redis_client:
            return None

        try:
            data = await self.redis_client.get(self._get_key(chat_id))
            if data:
                return json.loads(data)
            return None
        except Exception as e:
            logger.error(f"Failed to read session from Redis: {e}")
            return None

    async def set_session(self, chat_id: int, snapshot: Dict[str, Any], ttl: Optional[int] = None):
        """Stores an engine snapshot with a TTL."""
        if not self.redis_client:
            return

        try:
            data = json.dumps(snapshot, ensure_ascii=False)
            await self.redis_client.setex(self._get_key(chat_id), ttl or self.ttl, data)
        except Exception as e:
            logger.error(f"Failed to save session to Redis: {e}")

    async def delete_session(self, chat_id: int):
        """Removes a chat's snapshot."""
        if not self.redis_client:
            return

        try:
            await self.redis_client.delete(self._get_key(chat_id))
        except Exception as e:
            logger.error(f"Failed to delete session from Redis: {e}")

    async def has_active_session(self, chat_id: int) -> bool:
        """True if an unfinished quiz snapshot exists for the chat."""
        snapshot = await self.get_session(chat_id)
        return bool(snapshot) and snapshot.get("state") != "completed"
