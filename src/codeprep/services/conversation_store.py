"""
Recent interview turns, kept in Redis so every API process sees the same history.
"""
import json
import logging
from typing import Optional

from redis import asyncio as aioredis

from src.codeprep.core.config import settings

logger = logging.getLogger(__name__)


class ConversationStore:
    """Capped, expiring list of turns per conversation."""

    def __init__(self, redis: aioredis.Redis, ttl_seconds: int, max_turns: int = 20):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.max_turns = max_turns

    @staticmethod
    def _key(session_id: str) -> str:
        return f"conversation:{session_id}"

    async def append(self, session_id: str, role: str, text: str) -> None:
        """Add a turn, drop the oldest beyond ``max_turns`` and refresh the TTL."""
        key = self._key(session_id)
        turn = json.dumps({"role": role, "text": text})
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.rpush(key, turn)
            pipe.ltrim(key, -self.max_turns, -1)
            pipe.expire(key, self.ttl_seconds)
            await pipe.execute()

    async def recent(self, session_id: str, limit: Optional[int] = None) -> list[dict]:
        """Turns oldest first; at most ``limit`` of the newest ones."""
        start = -limit if limit else 0
        raw = await self.redis.lrange(self._key(session_id), start, -1)
        turns = []
        for item in raw:
            if isinstance(item, bytes):
                item = item.decode("utf-8")
            try:
                turns.append(json.loads(item))
            except json.JSONDecodeError:
                logger.warning(f"Dropping unreadable turn in conversation {session_id}")
        return turns

    async def clear(self, session_id: str) -> None:
        await self.redis.delete(self._key(session_id))


_redis_client: Optional[aioredis.Redis] = None


def get_conversation_store() -> ConversationStore:
    """FastAPI dependency; the connection pool is shared per process."""
    global _redis_client
    if _redis_client is None:
        _redis_client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return ConversationStore(
        _redis_client,
        ttl_seconds=settings.CONVERSATION_TTL_SECONDS,
        max_turns=settings.CONVERSATION_MAX_TURNS,
    )


async def close_conversation_store() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
