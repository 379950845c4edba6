import json
from unittest.mock import MagicMock, patch

import pytest
import redis

from golfmatch.models.usage import UsageCounter
from golfmatch.utils.counter_store import InMemoryCounterStore, RedisClient, RedisCounterStore
from golfmatch.utils.errors import ConfigurationError
from tests.conftest import NOW


def make_counter(count=1):
    return UsageCounter(identifier="user-1", action="swipe", window_start=NOW, count=count)


def increment(counter):
    counter = counter or make_counter(count=0)
    updated = counter.model_copy(update={"count": counter.count + 1})
    return updated, updated.count


class TestInMemoryCounterStore:
    def test_get_missing(self, counter_store):
        assert counter_store.get("missing") is None

    def test_set_get_delete(self, counter_store):
        counter_store.set("key", make_counter(), 60)
        assert counter_store.get("key") == make_counter()

        counter_store.delete("key")
        assert counter_store.get("key") is None

    def test_delete_missing_is_noop(self, counter_store):
        counter_store.delete("missing")
        assert len(counter_store) == 0

    def test_update_returns_mutator_result(self, counter_store):
        assert counter_store.update("key", increment, 60) == 1
        assert counter_store.update("key", increment, 60) == 2
        assert counter_store.get("key").count == 2

    @patch("golfmatch.utils.counter_store.time")
    def test_entries_expire(self, mock_time):
        mock_time.monotonic.return_value = 1000.0
        store = InMemoryCounterStore()
        store.set("key", make_counter(), 60)

        mock_time.monotonic.return_value = 1059.0
        assert store.get("key") is not None

        mock_time.monotonic.return_value = 1060.0
        assert store.get("key") is None
        assert len(store) == 0

    @patch("golfmatch.utils.counter_store.time")
    def test_writes_sweep_expired_entries(self, mock_time):
        mock_time.monotonic.return_value = 1000.0
        store = InMemoryCounterStore(sweep_interval=60)
        for i in range(100):
            store.set(f"short-{i}", make_counter(), 10)
        store.set("long", make_counter(), 600)

        # Inside the sweep interval expired keys stay until read
        mock_time.monotonic.return_value = 1030.0
        store.update("other", increment, 600)
        assert len(store) == 102

        mock_time.monotonic.return_value = 1061.0
        store.update("other", increment, 600)

        assert len(store) == 2
        assert store.get("long") is not None
        assert store.get("other").count == 2


class TestRedisCounterStore:
    @pytest.fixture
    def mock_client(self):
        return MagicMock()

    def test_get_decodes_json(self, mock_client):
        mock_client.get.return_value = make_counter(count=3).model_dump_json()
        store = RedisCounterStore(client=mock_client)

        counter = store.get("key")

        mock_client.get.assert_called_once_with("key")
        assert counter.count == 3
        assert counter.window_start == NOW

    def test_get_missing(self, mock_client):
        mock_client.get.return_value = None
        assert RedisCounterStore(client=mock_client).get("key") is None

    def test_set_uses_ttl(self, mock_client):
        store = RedisCounterStore(client=mock_client)

        store.set("key", make_counter(), 90)

        args, kwargs = mock_client.set.call_args
        assert args[0] == "key"
        assert json.loads(args[1])["count"] == 1
        assert kwargs["ex"] == 90

    def test_delete(self, mock_client):
        RedisCounterStore(client=mock_client).delete("key")
        mock_client.delete.assert_called_once_with("key")

    def test_update_runs_in_transaction(self, mock_client):
        pipe = MagicMock()
        pipe.get.return_value = make_counter(count=4).model_dump_json()
        mock_client.transaction.side_effect = lambda func, *keys, **kwargs: func(pipe)
        store = RedisCounterStore(client=mock_client)

        result = store.update("key", increment, 60)

        assert result == 5
        args, kwargs = mock_client.transaction.call_args
        assert args[1] == "key"
        assert kwargs["value_from_callable"] is True
        pipe.get.assert_called_once_with("key")
        pipe.multi.assert_called_once()
        set_args, set_kwargs = pipe.set.call_args
        assert json.loads(set_args[1])["count"] == 5
        assert set_kwargs["ex"] == 60

    def test_update_missing_key(self, mock_client):
        pipe = MagicMock()
        pipe.get.return_value = None
        mock_client.transaction.side_effect = lambda func, *keys, **kwargs: func(pipe)

        assert RedisCounterStore(client=mock_client).update("key", increment, 60) == 1


class TestRedisClient:
    def setup_method(self):
        RedisClient.reset()

    def teardown_method(self):
        RedisClient.reset()

    @patch("golfmatch.utils.counter_store.settings")
    def test_get_client_requires_url(self, mock_settings):
        mock_settings.REDIS_URL = None
        with pytest.raises(ConfigurationError):
            RedisClient.get_client()

    @patch("golfmatch.utils.counter_store.settings")
    def test_get_client_singleton(self, mock_settings):
        mock_settings.REDIS_URL = "redis://localhost:6379/0"
        with (
            patch.object(redis.ConnectionPool, "from_url") as mock_from_url,
            patch.object(redis, "Redis") as mock_redis,
        ):
            first = RedisClient.get_client()
            second = RedisClient.get_client()

        assert first is second
        mock_from_url.assert_called_once_with("redis://localhost:6379/0", max_connections=10, decode_responses=True)
        mock_redis.assert_called_once_with(connection_pool=mock_from_url.return_value)

    @patch("golfmatch.utils.counter_store.settings")
    def test_get_client_invalid_url(self, mock_settings):
        mock_settings.REDIS_URL = "not-a-url"
        with patch.object(redis.ConnectionPool, "from_url", side_effect=ValueError("bad url")):
            with pytest.raises(ConfigurationError) as exc_info:
                RedisClient.get_client()
        assert exc_info.value.details == {"error": "bad url"}
