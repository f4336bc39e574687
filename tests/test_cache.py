"""
거래 기록 캐시 테스트 (Redis 없이 메모리 캐시로 동작하는지 확인)
"""
import time
import uuid

from wallet_ledger.cache import HistoryCache, MemoryCache, get_history_cache

UNREACHABLE_REDIS = "redis://localhost:6399/0"


def test_memory_cache_expires_entries():
    cache = MemoryCache()
    cache.set("short", "value", ttl=0.05)
    cache.set("forever", "value")

    assert cache.get("short") == "value"
    time.sleep(0.1)
    assert cache.get("short") is None
    assert cache.get("forever") == "value"


def test_memory_cache_evicts_oldest_when_full():
    cache = MemoryCache(max_size=2)
    cache.set("a", "1")
    cache.set("b", "2")
    cache.set("c", "3")

    assert cache.get("a") is None
    assert cache.get("b") == "2"
    assert cache.get("c") == "3"


def test_history_cache_falls_back_to_memory_without_redis():
    cache = HistoryCache(url=UNREACHABLE_REDIS, ttl=30)
    player_id = uuid.uuid4()

    assert cache.client is None
    assert cache.is_connected() is False
    version = cache.version(player_id)
    assert cache.get(player_id, version) is None

    cache.put(player_id, version, {"playerId": str(player_id), "transactions": []})
    assert cache.get(player_id, version) == {"playerId": str(player_id), "transactions": []}


def test_invalidate_hides_existing_entry():
    cache = HistoryCache(url=UNREACHABLE_REDIS)
    player_id = uuid.uuid4()
    cache.put(player_id, cache.version(player_id), {"transactions": []})

    new_version = cache.invalidate(player_id)

    assert new_version == 1
    assert cache.version(player_id) == 1
    assert cache.get(player_id, cache.version(player_id)) is None


def test_listing_read_before_invalidation_is_never_served():
    """DB 조회 중 거래가 확정되어 무효화되면, 늦게 도착한 put은 다음 조회에 보이지 않음"""
    cache = HistoryCache(url=UNREACHABLE_REDIS)
    player_id = uuid.uuid4()

    version_at_read = cache.version(player_id)
    cache.invalidate(player_id)  # 동시에 확정된 거래의 무효화
    cache.put(player_id, version_at_read, {"transactions": ["stale"]})

    assert cache.get(player_id, cache.version(player_id)) is None


def test_history_cache_entries_are_per_player():
    cache = HistoryCache(url=UNREACHABLE_REDIS)
    player_a, player_b = uuid.uuid4(), uuid.uuid4()
    cache.put(player_a, cache.version(player_a), {"transactions": [1]})
    cache.put(player_b, cache.version(player_b), {"transactions": [2]})

    cache.invalidate(player_a)

    assert cache.get(player_a, cache.version(player_a)) is None
    assert cache.get(player_b, cache.version(player_b)) == {"transactions": [2]}


def test_corrupt_entry_is_discarded():
    cache = HistoryCache(url=UNREACHABLE_REDIS)
    player_id = uuid.uuid4()
    cache.memory.set(cache.key_for(player_id, 0), "{not json")

    assert cache.get(player_id, 0) is None
    assert cache.memory.get(cache.key_for(player_id, 0)) is None


def test_history_cache_key():
    player_id = uuid.UUID("123e4567-e89b-12d3-a456-426614174000")
    assert HistoryCache.key_for(player_id, 3) == "wallet:history:123e4567-e89b-12d3-a456-426614174000:3"


def test_history_cache_is_process_wide():
    assert get_history_cache() is get_history_cache()
