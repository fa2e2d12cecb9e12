"""Tests for the Redis-backed result cache."""
import hashlib

from app.infrastructure.cache.result_cache import UNMATCHED_KEYS, ResultCache, content_hash


def test_key_is_namespaced_sha256():
    image = b"\xff\xd8\xff some jpeg bytes"
    expected = hashlib.sha256(image).hexdigest()

    assert content_hash(image) == expected
    assert ResultCache.key_for(image) == f"recognition:{expected}"


def test_identical_bytes_share_a_key():
    assert ResultCache.key_for(b"abc") == ResultCache.key_for(b"abc")
    assert ResultCache.key_for(b"abc") != ResultCache.key_for(b"abd")


class TestResultCache:
    """Best-effort cache operations."""

    async def test_set_then_get_round_trip(self, cache, fake_redis):
        """Should return an equal payload and set the expiry."""
        payload = {"message": "Face not recognized", "recognized": False, "confidence": 0.42}

        assert await cache.set("recognition:abc", payload)

        assert await cache.get("recognition:abc") == payload
        assert fake_redis.ttls["recognition:abc"] == 3600

    async def test_missing_key_is_none(self, cache):
        assert await cache.get("recognition:missing") is None

    async def test_backend_failure_is_a_miss(self, cache, fake_redis):
        await cache.set("recognition:abc", {"recognized": True})
        fake_redis.fail = True

        assert await cache.get("recognition:abc") is None
        assert await cache.set("recognition:def", {"recognized": False}) is False
        assert await cache.track_unmatched("recognition:def") is False
        assert await cache.ping() is False

    async def test_undecodable_entry_is_a_miss(self, cache, fake_redis):
        fake_redis.data["recognition:bad"] = "{not json"

        assert await cache.get("recognition:bad") is None

    async def test_invalidate_unmatched_removes_every_tracked_key(self, cache, fake_redis):
        """Should delete tracked entries and the set in one transaction."""
        for key in ("recognition:a", "recognition:b"):
            await cache.set(key, {"recognized": False})
            await cache.track_unmatched(key)
        await cache.set("recognition:hit", {"recognized": True})

        removed = await cache.invalidate_unmatched()

        assert removed == 2
        assert fake_redis.executed_transactions == 1
        assert await cache.get("recognition:a") is None
        assert await cache.get("recognition:b") is None
        assert await cache.unmatched_keys() == []
        assert UNMATCHED_KEYS not in fake_redis.data
        assert await cache.get("recognition:hit") == {"recognized": True}

    async def test_key_tracked_during_invalidation_stays_tracked(self, cache, fake_redis):
        """A negative entry written after the member read must survive for the next enrollment."""
        await cache.set("recognition:early", {"recognized": False})
        await cache.track_unmatched("recognition:early")
        read_members = fake_redis.smembers

        async def smembers_then_concurrent_write(key):
            members = await read_members(key)
            await cache.set("recognition:late", {"recognized": False})
            await cache.track_unmatched("recognition:late")
            return members

        fake_redis.smembers = smembers_then_concurrent_write

        assert await cache.invalidate_unmatched() == 1

        fake_redis.smembers = read_members
        assert await cache.get("recognition:early") is None
        assert await cache.get("recognition:late") == {"recognized": False}
        assert await cache.unmatched_keys() == ["recognition:late"]

        assert await cache.invalidate_unmatched() == 1
        assert await cache.get("recognition:late") is None

    async def test_invalidate_with_nothing_tracked_is_noop(self, cache, fake_redis):
        assert await cache.invalidate_unmatched() == 0
        assert fake_redis.executed_transactions == 0

    async def test_invalidate_failure_is_swallowed(self, cache, fake_redis):
        await cache.set("recognition:a", {"recognized": False})
        await cache.track_unmatched("recognition:a")

        async def healthy_smembers(key):
            return {"recognition:a"}

        fake_redis.smembers = healthy_smembers
        fake_redis.fail = True

        assert await cache.invalidate_unmatched() == 0
        assert fake_redis.executed_transactions == 1

    async def test_close_releases_client(self, cache, fake_redis):
        await cache.close()
        assert fake_redis.closed
