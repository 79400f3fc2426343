"""
Tests for the State Store.

Tests typed round-trips, glob key matching, expiry consistency between
exists() and keys(), undecodable values as misses and the StoreFactory.

Version: 1.0.0
"""

import asyncio
from typing import Dict, List

import pytest

from agentmesh.state import (
    ConversationState,
    InMemoryStateStore,
    StateSerializationError,
    StoreFactory,
    UnknownBackendError,
    glob_to_regex,
)
from agentmesh.utils.cancellation import CancellationToken, OperationCancelledError


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryStateStore(clock=clock)


# =============================================================================
# ROUND TRIP TESTS
# =============================================================================

class TestRoundTrip:
    """Set followed by Get returns an equal value."""

    @pytest.mark.asyncio
    async def test_dict_round_trip(self, store):
        value = {"region": "usgovvirginia", "count": 3, "tags": ["a", "b"]}
        await store.set("shared:c-1:config", value)

        assert await store.get("shared:c-1:config") == value

    @pytest.mark.asyncio
    async def test_model_round_trip(self, store):
        state = ConversationState(conversation_id="c-1", user_id="u-1", variables={"env": "dev"})
        await store.set("conversation:c-1", state)

        loaded = await store.get("conversation:c-1", ConversationState)

        assert isinstance(loaded, ConversationState)
        assert loaded == state

    @pytest.mark.asyncio
    async def test_typed_generic_round_trip(self, store):
        await store.set("shared:c-1:scores", {"a": 1.5, "b": 2.0})

        loaded = await store.get("shared:c-1:scores", Dict[str, float])

        assert loaded == {"a": 1.5, "b": 2.0}

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self, store):
        assert await store.get("conversation:nope") is None

    @pytest.mark.asyncio
    async def test_overwrite_replaces_value(self, store):
        await store.set("k", 1)
        await store.set("k", 2)

        assert await store.get("k", int) == 2

    @pytest.mark.asyncio
    async def test_unserializable_value_raises(self, store):
        with pytest.raises(StateSerializationError) as exc_info:
            await store.set("k", object())

        assert exc_info.value.key == "k"
        assert not await store.exists("k")


# =============================================================================
# DESERIALIZATION MISS TESTS
# =============================================================================

class TestUndecodableValues:
    """Deserialization errors are cache misses, never exceptions."""

    @pytest.mark.asyncio
    async def test_wrong_type_is_a_miss(self, store):
        await store.set("conversation:c-1", {"not": "a conversation"})

        assert await store.get("conversation:c-1", ConversationState) is None

    @pytest.mark.asyncio
    async def test_corrupt_payload_is_a_miss(self, store):
        await store._write("conversation:c-1", "{not json", None)

        assert await store.get("conversation:c-1") is None
        assert await store.exists("conversation:c-1")

    @pytest.mark.asyncio
    async def test_wrong_list_item_type_is_a_miss(self, store):
        await store.set("k", ["a", "b"])

        assert await store.get("k", List[int]) is None


# =============================================================================
# KEY PATTERN TESTS
# =============================================================================

class TestKeyPatterns:
    """Glob patterns match whole keys only."""

    @pytest.mark.asyncio
    async def test_prefix_pattern_has_no_false_positives(self, store):
        await store.set("conversation:a", 1)
        await store.set("conversation:b", 2)
        await store.set("agent:a:x", 3)

        keys = await store.keys("conversation:*")

        assert set(keys) == {"conversation:a", "conversation:b"}

    @pytest.mark.asyncio
    async def test_substring_does_not_match(self, store):
        await store.set("xconversation:a", 1)
        await store.set("conversation:a", 2)

        assert await store.keys("conversation:*") == ["conversation:a"]

    @pytest.mark.asyncio
    async def test_single_character_wildcard(self, store):
        await store.set("events:a", 1)
        await store.set("events:ab", 2)

        assert await store.keys("events:?") == ["events:a"]

    @pytest.mark.asyncio
    async def test_regex_metacharacters_are_literal(self, store):
        await store.set("shared:c.1:[x]", 1)
        await store.set("shared:cX1:x", 2)

        assert await store.keys("shared:c.1:*") == ["shared:c.1:[x]"]
        assert await store.keys("shared:c?1:[x]") == ["shared:c.1:[x]"]

    def test_glob_translation_is_anchored(self):
        regex = glob_to_regex("agent:*:compliance")

        assert regex.match("agent:c-1:compliance")
        assert not regex.match("agent:c-1:compliance:extra")
        assert not regex.match("xagent:c-1:compliance")

    @pytest.mark.asyncio
    async def test_clear_by_pattern(self, store):
        await store.set("shared:c-1:a", 1)
        await store.set("shared:c-1:b", 2)
        await store.set("shared:c-2:a", 3)

        removed = await store.clear("shared:c-1:*")

        assert removed == 2
        assert await store.keys() == ["shared:c-2:a"]


# =============================================================================
# EXPIRY TESTS
# =============================================================================

class TestExpiry:
    """Expired entries vanish from every view at once."""

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, store, clock):
        await store.set("k", "v", ttl_s=10)
        clock.advance(9)
        assert await store.get("k") == "v"

        clock.advance(1)
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_exists_and_keys_agree_after_expiry(self, store, clock):
        await store.set("conversation:a", 1, ttl_s=5)
        await store.set("conversation:b", 2)
        clock.advance(6)

        assert not await store.exists("conversation:a")
        assert await store.keys("conversation:*") == ["conversation:b"]
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_purge_expired(self, store, clock):
        await store.set("a", 1, ttl_s=1)
        await store.set("b", 2, ttl_s=1)
        await store.set("c", 3)
        clock.advance(2)

        assert await store.purge_expired() == 2
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_set_if_absent_succeeds_over_expired_entry(self, store, clock):
        await store.set("k", "old", ttl_s=1)
        clock.advance(2)

        assert await store.set_if_absent("k", "new") is True
        assert await store.get("k") == "new"

    @pytest.mark.asyncio
    async def test_remove_of_expired_entry_reports_false(self, store, clock):
        await store.set("k", "v", ttl_s=1)
        clock.advance(2)

        assert await store.remove("k") is False
        assert len(store) == 0


# =============================================================================
# ATOMIC CREATE AND CONCURRENCY TESTS
# =============================================================================

class TestConcurrency:
    """Concurrent access keeps the store consistent."""

    @pytest.mark.asyncio
    async def test_set_if_absent_only_first_wins(self, store):
        outcomes = await asyncio.gather(*[store.set_if_absent("k", i) for i in range(10)])

        assert outcomes.count(True) == 1
        winner = outcomes.index(True)
        assert await store.get("k") == winner

    @pytest.mark.asyncio
    async def test_concurrent_writes_to_distinct_keys(self, store):
        await asyncio.gather(*[store.set(f"shared:c-1:{i}", i) for i in range(50)])

        assert len(await store.keys("shared:c-1:*")) == 50

    @pytest.mark.asyncio
    async def test_remove_reports_existence(self, store):
        await store.set("k", 1)

        assert await store.remove("k") is True
        assert await store.remove("k") is False


# =============================================================================
# CANCELLATION TESTS
# =============================================================================

class TestCancellation:
    """Store operations observe the cancellation token."""

    @pytest.mark.asyncio
    async def test_cancelled_token_stops_writes(self, store):
        token = CancellationToken()
        token.cancel("shutdown")

        with pytest.raises(OperationCancelledError):
            await store.set("k", 1, cancellation=token)

        assert not await store.exists("k")

    @pytest.mark.asyncio
    async def test_cancelled_token_stops_reads(self, store):
        await store.set("k", 1)
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            await store.get("k", cancellation=token)


# =============================================================================
# FACTORY TESTS
# =============================================================================

class TestStoreFactory:
    """Tests for StoreFactory."""

    def test_memory_backend_is_built_in(self):
        assert "memory" in StoreFactory.list_available()
        assert isinstance(StoreFactory.create_store("memory"), InMemoryStateStore)

    def test_each_call_creates_a_fresh_store(self):
        assert StoreFactory.create_store() is not StoreFactory.create_store()

    def test_unknown_backend_raises(self):
        with pytest.raises(UnknownBackendError) as exc_info:
            StoreFactory.create_store("redis")

        assert exc_info.value.backend == "redis"
        assert "memory" in exc_info.value.details["available"]

    def test_register_custom_backend(self):
        StoreFactory.register("custom", InMemoryStateStore)
        try:
            assert isinstance(StoreFactory.create_store("custom"), InMemoryStateStore)
        finally:
            StoreFactory.unregister("custom")
        assert "custom" not in StoreFactory.list_available()

    def test_cannot_unregister_memory(self):
        with pytest.raises(ValueError):
            StoreFactory.unregister("memory")
