"""Tests for key-value store backends."""
import pytest
from unittest.mock import MagicMock, patch
from redis.exceptions import ConnectionError as RedisConnectionError, ResponseError

from app.services import key_value_store
from app.services.key_value_store import (
    InMemoryKeyValueStore,
    RedisKeyValueStore,
    StorageFullError,
    StorageUnavailableError,
    create_store,
)


class TestInMemoryKeyValueStore:

    def test_set_get_remove(self):
        store = InMemoryKeyValueStore()
        store.set("a", "1")

        assert store.get("a") == "1"
        store.remove("a")
        assert store.get("a") is None

    def test_remove_missing_key_is_silent(self):
        InMemoryKeyValueStore().remove("missing")

    def test_keys_by_prefix(self):
        store = InMemoryKeyValueStore()
        for key in ("cache_a", "cache_b", "stats"):
            store.set(key, "x")

        assert sorted(store.keys("cache_")) == ["cache_a", "cache_b"]
        assert len(store.keys()) == 3

    def test_capacity_rejects_write_and_keeps_old_value(self):
        store = InMemoryKeyValueStore(capacity=10)
        store.set("k", "abc")

        with pytest.raises(StorageFullError):
            store.set("k", "x" * 20)
        assert store.get("k") == "abc"

    def test_overwrite_counts_freed_space(self):
        store = InMemoryKeyValueStore(capacity=10)
        store.set("k", "x" * 9)
        store.set("k", "y" * 9)

        assert store.get("k") == "y" * 9


class TestRedisKeyValueStore:

    def test_get_delegates(self):
        client = MagicMock()
        client.get.return_value = "value"

        assert RedisKeyValueStore(client).get("k") == "value"

    def test_oom_maps_to_full(self):
        client = MagicMock()
        client.set.side_effect = ResponseError("OOM command not allowed when used memory > 'maxmemory'.")

        with pytest.raises(StorageFullError):
            RedisKeyValueStore(client).set("k", "v")

    def test_connection_error_maps_to_unavailable(self):
        client = MagicMock()
        client.get.side_effect = RedisConnectionError("refused")

        with pytest.raises(StorageUnavailableError):
            RedisKeyValueStore(client).get("k")

    def test_keys_filters_by_prefix(self):
        client = MagicMock()
        client.scan_iter.return_value = iter(["bible_cache_v1_a", "bible_cache_v1_b"])

        keys = RedisKeyValueStore(client).keys("bible_cache_v1_")

        assert keys == ["bible_cache_v1_a", "bible_cache_v1_b"]
        client.scan_iter.assert_called_once_with(match="bible_cache_v1_*")

    def test_remove_uses_delete(self):
        client = MagicMock()

        RedisKeyValueStore(client).remove("k")

        client.delete.assert_called_once_with("k")


class TestCreateStore:

    def test_memory_backend(self, mock_settings):
        mock_settings.uses_redis = False
        mock_settings.memory_store_capacity = 50

        store = create_store(mock_settings)

        assert isinstance(store, InMemoryKeyValueStore)
        assert store.capacity == 50

    @patch("app.services.key_value_store.redis.from_url")
    def test_redis_backend(self, mock_from_url, mock_settings):
        mock_settings.uses_redis = True
        mock_settings.redis_url = "redis://localhost:6379/0"
        mock_from_url.return_value.ping.return_value = True

        store = create_store(mock_settings)

        assert isinstance(store, RedisKeyValueStore)

    @patch("app.services.key_value_store.redis.from_url")
    def test_unreachable_redis_degrades_to_memory(self, mock_from_url, mock_settings):
        mock_settings.uses_redis = True
        mock_settings.redis_url = "redis://nowhere:6379/0"
        mock_settings.memory_store_capacity = 0
        mock_from_url.return_value.ping.side_effect = RedisConnectionError("refused")

        store = create_store(mock_settings)

        assert isinstance(store, InMemoryKeyValueStore)


class TestSharedStore:

    def test_initialize_get_close(self, mock_settings):
        mock_settings.uses_redis = False
        mock_settings.memory_store_capacity = 0
        key_value_store.close_store()

        store = key_value_store.initialize_store(mock_settings)

        assert key_value_store.get_store() is store
        assert key_value_store.initialize_store(mock_settings) is store
        key_value_store.close_store()
        assert key_value_store._store is None
