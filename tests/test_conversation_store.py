import fakeredis
import pytest

from src.codeprep.services.conversation_store import ConversationStore


@pytest.fixture
def store(redis):
    return ConversationStore(redis, ttl_seconds=120, max_turns=3)


async def test_turns_come_back_oldest_first(store):
    await store.append("session-1", "assistant", "Tell me about yourself.")
    await store.append("session-1", "user", "I build APIs.")

    assert await store.recent("session-1") == [
        {"role": "assistant", "text": "Tell me about yourself."},
        {"role": "user", "text": "I build APIs."},
    ]


async def test_history_is_capped(store):
    for i in range(5):
        await store.append("session-1", "user", f"turn {i}")

    turns = await store.recent("session-1")

    assert [t["text"] for t in turns] == ["turn 2", "turn 3", "turn 4"]


async def test_recent_limit_returns_newest(store):
    for i in range(3):
        await store.append("session-1", "user", f"turn {i}")

    assert [t["text"] for t in await store.recent("session-1", limit=2)] == ["turn 1", "turn 2"]


async def test_sessions_are_separate_and_expire(store, redis):
    await store.append("session-1", "user", "one")
    await store.append("session-2", "user", "two")

    assert [t["text"] for t in await store.recent("session-2")] == ["two"]
    assert 0 < await redis.ttl("conversation:session-1") <= 120


async def test_clear(store):
    await store.append("session-1", "user", "one")

    await store.clear("session-1")

    assert await store.recent("session-1") == []


async def test_store_is_shared_between_instances():
    server = fakeredis.FakeServer()
    writer = ConversationStore(fakeredis.FakeAsyncRedis(server=server, decode_responses=True), ttl_seconds=60)
    reader = ConversationStore(fakeredis.FakeAsyncRedis(server=server, decode_responses=True), ttl_seconds=60)

    await writer.append("session-1", "user", "hello")

    assert await reader.recent("session-1") == [{"role": "user", "text": "hello"}]
