"""Redis cache adapter behaviour against a mocked client."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
import redis

from lib_versioned_config.adapters.cache.redis import RedisTagCache
from lib_versioned_config.domain.errors import CacheUnavailable


@pytest.fixture()
def client() -> MagicMock:
    mock = MagicMock()
    mock.get.return_value = None
    mock.ping.return_value = True
    return mock


@pytest.fixture()
def cache(client: MagicMock) -> RedisTagCache:
    return RedisTagCache(client, prefix="test")


def test_hit_returns_decoded_value_without_computing(cache: RedisTagCache, client: MagicMock) -> None:
    client.get.return_value = json.dumps({"host": "smtp"}).encode()
    compute = MagicMock()
    assert cache.get_or_compute("config.mailer", 60, ["config"], compute) == {"host": "smtp"}
    client.get.assert_called_once_with("test:config.mailer")
    compute.assert_not_called()


def test_miss_stores_value_and_tags_it(cache: RedisTagCache, client: MagicMock) -> None:
    pipeline = client.pipeline.return_value
    value = cache.get_or_compute("config.mailer", 86400, ["config"], lambda: {"host": "smtp"})
    assert value == {"host": "smtp"}
    pipeline.set.assert_called_once_with("test:config.mailer", json.dumps({"host": "smtp"}), ex=86400)
    pipeline.sadd.assert_called_once_with("test:tag:config", "test:config.mailer")
    pipeline.expire.assert_called_once_with("test:tag:config", 86400)
    pipeline.execute.assert_called_once()


def test_read_failure_raises_cache_unavailable(cache: RedisTagCache, client: MagicMock) -> None:
    client.get.side_effect = redis.ConnectionError("down")
    with pytest.raises(CacheUnavailable):
        cache.get_or_compute("config.mailer", 60, ["config"], lambda: {})


def test_corrupt_entry_raises_cache_unavailable(cache: RedisTagCache, client: MagicMock) -> None:
    client.get.return_value = b"{not json"
    with pytest.raises(CacheUnavailable):
        cache.get_or_compute("config.mailer", 60, ["config"], lambda: {})


def test_write_failure_still_returns_computed_value(cache: RedisTagCache, client: MagicMock) -> None:
    client.pipeline.return_value.execute.side_effect = redis.TimeoutError("slow")
    assert cache.get_or_compute("config.mailer", 60, ["config"], lambda: {"a": 1}) == {"a": 1}


def test_compute_errors_propagate(cache: RedisTagCache, client: MagicMock) -> None:
    def boom():
        raise ValueError("bad document")

    with pytest.raises(ValueError):
        cache.get_or_compute("config.mailer", 60, ["config"], boom)
    client.pipeline.assert_not_called()


def test_is_enabled_requires_flag_and_ping(client: MagicMock) -> None:
    assert RedisTagCache(client).is_enabled() is True
    assert RedisTagCache(client, enabled=False).is_enabled() is False
    client.ping.side_effect = redis.ConnectionError("refused")
    assert RedisTagCache(client).is_enabled() is False


def test_invalidate_tag_deletes_members_then_set(cache: RedisTagCache, client: MagicMock) -> None:
    client.smembers.return_value = {b"test:config.a"}
    cache.invalidate_tag("config")
    assert client.delete.call_args_list[0].args == (b"test:config.a",)
    assert client.delete.call_args_list[1].args == ("test:tag:config",)


def test_invalidate_with_no_members_only_drops_set(cache: RedisTagCache, client: MagicMock) -> None:
    client.smembers.return_value = set()
    cache.invalidate_tag("config")
    client.delete.assert_called_once_with("test:tag:config")


def test_invalidate_failure_raises_cache_unavailable(cache: RedisTagCache, client: MagicMock) -> None:
    client.smembers.side_effect = redis.ConnectionError("down")
    with pytest.raises(CacheUnavailable):
        cache.invalidate_tag("config")
