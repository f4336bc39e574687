"""Read-side cache for transaction history listings.

L1 is a per-process TTL map, L2 is Redis. When Redis cannot be reached the
cache runs on L1 alone. The transaction engine never reads from here; balances
are always read from the database.
"""
import json
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Dict, Optional

import redis

from wallet_ledger.config.settings import settings

logger = logging.getLogger(__name__)

HISTORY_CACHE_PREFIX = "wallet:history"
# L1 항목은 요청한 TTL과 관계없이 최대 60초
MEMORY_TTL_CAP = 60

class MemoryCache:
    """프로세스 내 TTL 캐시 (L1). 가득 차면 가장 먼저 넣은 항목부터 버린다."""

    def __init__(self, max_size: int = 1000):
        self._entries: "OrderedDict[str, tuple]" = OrderedDict()
        self.max_size = max_size
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at is not None and expires_at <= time.monotonic():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl: Optional[float] = None) -> None:
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
            expires_at = time.monotonic() + ttl if ttl else None
            self._entries[key] = (expires_at, value)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

class HistoryCache:
    """
    플레이어별 거래 기록 응답 캐시 (L1 메모리 + L2 Redis).

    항목은 플레이어별 버전 번호를 키에 포함한다. invalidate()는 항목을 지우는 대신
    버전을 올리므로, 무효화 전에 DB를 읽기 시작한 요청이 뒤늦게 put()해도
    그 값은 지난 버전 키에 들어가 다시 읽히지 않는다.

    Attributes:
        client: Redis 클라이언트 (연결 실패 시 None)
        memory: L1 캐시
        ttl: 기본 TTL (초)
    """

    def __init__(self, url: Optional[str] = None, ttl: Optional[int] = None):
        self.memory = MemoryCache(max_size=5000)
        self.ttl = ttl or settings.HISTORY_CACHE_TTL
        self.client = self._connect(url or settings.REDIS_URL)
        self._versions: Dict[str, int] = {}
        self._versions_lock = threading.Lock()

    @staticmethod
    def _connect(url: str) -> Optional[redis.Redis]:
        try:
            # Redis가 없어도 기동이 늦어지지 않도록 짧은 timeout
            client = redis.Redis.from_url(url, decode_responses=True, socket_timeout=2, socket_connect_timeout=2)
            client.ping()
        except redis.RedisError as e:
            logger.warning(f"Redis unavailable at {url} ({e}); history cache runs in memory only")
            return None
        logger.info(f"History cache connected to Redis at {url}")
        return client

    @staticmethod
    def key_for(player_id: Any, version: int) -> str:
        """wallet:history:{player_id}:{version}"""
        return f"{HISTORY_CACHE_PREFIX}:{player_id}:{version}"

    @staticmethod
    def version_key_for(player_id: Any) -> str:
        return f"{HISTORY_CACHE_PREFIX}:{player_id}:version"

    def is_connected(self) -> bool:
        if self.client is None:
            return False
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False

    def version(self, player_id: Any) -> int:
        """현재 버전. DB를 읽기 전에 가져와 get()/put()에 그대로 넘긴다."""
        key = self.version_key_for(player_id)
        if self.client is not None:
            try:
                return int(self.client.get(key) or 0)
            except redis.RedisError as e:
                logger.error(f"Redis GET failed for {key}: {e}")
        with self._versions_lock:
            return self._versions.get(key, 0)

    def get(self, player_id: Any, version: int) -> Optional[dict]:
        """캐시된 거래 기록을 반환합니다. 없거나 손상된 경우 None."""
        key = self.key_for(player_id, version)
        raw = self.memory.get(key)

        if raw is None and self.client is not None:
            try:
                raw = self.client.get(key)
            except redis.RedisError as e:
                logger.error(f"Redis GET failed for {key}: {e}")
            if raw is not None:
                self.memory.set(key, raw, ttl=min(self.ttl, MEMORY_TTL_CAP))

        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error(f"Discarding corrupt cache entry {key}")
            self._delete(key)
            return None

    def put(self, player_id: Any, version: int, payload: dict, ttl: Optional[int] = None) -> None:
        key = self.key_for(player_id, version)
        ttl = ttl or self.ttl
        raw = json.dumps(payload)

        self.memory.set(key, raw, ttl=min(ttl, MEMORY_TTL_CAP))
        if self.client is not None:
            try:
                self.client.set(key, raw, ex=ttl)
            except redis.RedisError as e:
                logger.error(f"Redis SET failed for {key}: {e}")

    def invalidate(self, player_id: Any) -> int:
        """플레이어 버전을 올려 기존 항목을 모두 무효화합니다. 새 버전을 반환."""
        key = self.version_key_for(player_id)
        with self._versions_lock:
            version = self._versions.get(key, 0) + 1
            self._versions[key] = version
        if self.client is not None:
            try:
                return int(self.client.incr(key))
            except redis.RedisError as e:
                logger.error(f"Redis INCR failed for {key}: {e}")
        return version

    def _delete(self, key: str) -> None:
        self.memory.delete(key)
        if self.client is not None:
            try:
                self.client.delete(key)
            except redis.RedisError as e:
                logger.error(f"Redis DELETE failed for {key}: {e}")

_history_cache: Optional[HistoryCache] = None
_history_cache_lock = threading.Lock()

def get_history_cache() -> HistoryCache:
    """프로세스 전역 HistoryCache를 반환합니다. 첫 호출 시 Redis에 연결합니다."""
    global _history_cache
    if _history_cache is None:
        with _history_cache_lock:
            if _history_cache is None:
                _history_cache = HistoryCache()
    return _history_cache
