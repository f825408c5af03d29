"""Read-through cache for generated chapter text."""
import json
import logging
import re
from typing import Any, Awaitable, Callable, List, Optional

from pydantic import TypeAdapter, ValidationError

from app.config import get_settings
from app.models.schemas import ChapterVerse
from app.services.key_value_store import KeyValueStore, StorageError, get_store

logger = logging.getLogger(__name__)

ChapterFetcher = Callable[[str, int, str], Awaitable[List[ChapterVerse]]]

_payload_adapter = TypeAdapter(List[ChapterVerse])

_WHITESPACE = re.compile(r"\s+")


def _generate_cache_key(prefix: str, *args: Any) -> str:
    """Generate a storage-safe cache key from prefix and arguments.

    Args:
        prefix: Namespace prefix (e.g., 'bible_cache_v1_')
        *args: Values to include in the key, in order

    Returns:
        Cache key string with every whitespace run replaced by '_'
    """
    normalized = [str(arg).strip() for arg in args]
    return _WHITESPACE.sub("_", prefix + "_".join(normalized))


def build_cache_key(prefix: str, version: str, book: str, chapter: int) -> str:
    return _generate_cache_key(prefix, version, book, chapter)


class ContentCache:
    """Memoizes chapter payloads in the shared key-value store.

    Entries never expire. When a write is rejected the whole cache namespace
    is dropped so later writes have room; the caller still gets its payload.
    """

    def __init__(self, store: KeyValueStore, prefix: str, reserved_keys: tuple = ()) -> None:
        if not prefix:
            raise ValueError("Cache prefix must not be empty")
        for reserved in reserved_keys:
            if reserved.startswith(prefix):
                raise ValueError(f"Cache prefix {prefix!r} overlaps state key {reserved!r}")
        self.store = store
        self.prefix = prefix

    def key_for(self, book: str, chapter: int, version: str) -> str:
        return build_cache_key(self.prefix, version, book, chapter)

    def _read(self, key: str) -> Optional[List[ChapterVerse]]:
        try:
            raw = self.store.get(key)
        except StorageError as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None

        if raw is None:
            logger.info(f"Cache miss for key: {key[:80]}")
            return None

        try:
            payload = _payload_adapter.validate_json(raw)
        except ValidationError:
            logger.warning(f"Discarding corrupt cache entry: {key[:80]}")
            self._remove(key)
            return None

        logger.info(f"Cache hit for key: {key[:80]}")
        return payload

    def _remove(self, key: str) -> bool:
        try:
            self.store.remove(key)
            return True
        except StorageError as e:
            logger.error(f"Cache delete error for key {key}: {e}")
            return False

    def _write(self, key: str, payload: List[ChapterVerse]) -> bool:
        serialized = json.dumps([verse.model_dump(by_alias=True) for verse in payload], ensure_ascii=False)
        try:
            self.store.set(key, serialized)
            return True
        except StorageError as e:
            logger.warning(f"Cache set failed for key {key}: {e}")
            return False

    async def get(
        self,
        book: str,
        chapter: int,
        version: str,
        fetcher: ChapterFetcher,
    ) -> List[ChapterVerse]:
        """Return the chapter payload, calling ``fetcher`` only on a miss.

        Fetcher errors propagate; nothing is stored for them. An empty payload
        is returned but not stored.
        """
        key = self.key_for(book, chapter, version)

        cached = self._read(key)
        if cached is not None:
            return cached

        payload = await fetcher(book, chapter, version)

        if payload and not self._write(key, payload):
            evicted = self.evict_all()
            logger.warning(f"Cache write rejected; evicted {evicted} entries under {self.prefix!r}")

        return payload

    def invalidate(self, book: str, chapter: int, version: str) -> bool:
        return self._remove(self.key_for(book, chapter, version))

    def evict_all(self) -> int:
        """Remove every entry under this cache's prefix.

        Returns:
            Number of keys removed
        """
        try:
            keys = self.store.keys(self.prefix)
        except StorageError as e:
            logger.error(f"Cache clear prefix error for {self.prefix}: {e}")
            return 0

        return sum(1 for key in keys if self._remove(key))


def get_content_cache() -> ContentCache:
    """Dependency injector for the content cache."""
    settings = get_settings()
    return ContentCache(
        get_store(),
        settings.cache_prefix,
        reserved_keys=(settings.stats_key, settings.plans_key),
    )
