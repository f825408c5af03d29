"""Key-value storage backends shared by the content cache and state persistence."""
import logging
import threading
from typing import Dict, List, Optional, Protocol

import redis
from redis.exceptions import RedisError, ResponseError

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base class for key-value store failures."""


class StorageFullError(StorageError):
    """The store rejected a write for lack of space."""


class StorageUnavailableError(StorageError):
    """The store could not be reached or failed the operation."""


class KeyValueStore(Protocol):
    """Synchronous string storage; any call may raise StorageError."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self, prefix: str = "") -> List[str]: ...


class InMemoryKeyValueStore:
    """Process-local store with an optional capacity measured in characters.

    A capacity of 0 means unbounded. Writes that would push the total size of
    keys plus values over the capacity raise StorageFullError and leave the
    previous value in place.
    """

    def __init__(self, capacity: int = 0) -> None:
        self.capacity = max(0, capacity)
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def _size(self) -> int:
        return sum(len(k) + len(v) for k, v in self._data.items())

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            if self.capacity:
                current = self._data.get(key)
                freed = len(key) + len(current) if current is not None else 0
                projected = self._size() - freed + len(key) + len(value)
                if projected > self.capacity:
                    raise StorageFullError(
                        f"Write of {len(value)} chars to {key!r} exceeds capacity {self.capacity}"
                    )
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return [k for k in self._data if k.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._data)


class RedisKeyValueStore:
    """Store backed by a Redis client created with decode_responses=True."""

    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStore":
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30
        )
        return cls(client)

    @staticmethod
    def _translate(exc: RedisError, action: str, key: str) -> StorageError:
        if isinstance(exc, ResponseError) and str(exc).upper().startswith("OOM"):
            return StorageFullError(f"Redis out of memory during {action} of {key!r}")
        return StorageUnavailableError(f"Redis {action} failed for {key!r}: {exc}")

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except RedisError as e:
            raise self._translate(e, "get", key) from e

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
        except RedisError as e:
            raise self._translate(e, "set", key) from e

    def remove(self, key: str) -> None:
        try:
            self.client.delete(key)
        except RedisError as e:
            raise self._translate(e, "delete", key) from e

    def keys(self, prefix: str = "") -> List[str]:
        try:
            found = self.client.scan_iter(match=f"{prefix}*")
            # SCAN patterns are globs; the prefix check drops accidental matches
            return [k for k in found if k.startswith(prefix)]
        except RedisError as e:
            raise self._translate(e, "scan", prefix) from e

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except RedisError as e:
            raise self._translate(e, "ping", "") from e

    def close(self) -> None:
        try:
            self.client.close()
        except RedisError as e:
            logger.error(f"Error closing Redis client: {e}")


def create_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """Build the configured store, degrading to memory when Redis is unreachable."""
    settings = settings or get_settings()

    if not settings.uses_redis:
        logger.info("Using in-memory key-value store")
        return InMemoryKeyValueStore(capacity=settings.memory_store_capacity)

    store = RedisKeyValueStore.from_url(settings.redis_url)
    try:
        store.ping()
        logger.info(f"Redis key-value store initialized: {settings.redis_url}")
        return store
    except StorageError as e:
        logger.error(f"Failed to initialize Redis store: {e}")
        # Don't raise - degrade gracefully to a process-local store
        return InMemoryKeyValueStore(capacity=settings.memory_store_capacity)


# Global store shared by the content cache and state persistence
_store: Optional[KeyValueStore] = None


def initialize_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """Initialize the shared key-value store."""
    global _store

    if _store is not None:
        logger.warning("Key-value store already initialized")
        return _store

    _store = create_store(settings)
    return _store


def get_store() -> KeyValueStore:
    """Return the shared store, initializing it on first use."""
    if _store is None:
        return initialize_store()
    return _store


def close_store() -> None:
    """Close the shared store."""
    global _store

    if _store is not None:
        close = getattr(_store, "close", None)
        if callable(close):
            close()
        logger.info("Key-value store closed")
        _store = None
