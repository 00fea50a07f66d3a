"""
Tests for the Redis storage backend.

Tests marked with the ``redis_client`` fixture need a running Redis at
``REDIS_URL`` and are skipped without one; the rest use a mocked client.
"""

import json
import uuid
from unittest import mock

import pytest
import redis

from award_deposit.config import settings
from award_deposit.entities import Bitstream, Bundle, Item
from award_deposit.repositories import RedisContentRepository, RedisSessionRepository, StaleItemError
from award_deposit.repositories.redis_repository import item_to_dict


@pytest.fixture
def redis_client():
    """Live Redis client, skipping the test when Redis is not reachable."""
    client = redis.Redis.from_url(settings.redis_url, password=settings.redis_password, socket_connect_timeout=0.5)
    try:
        client.ping()
    except redis.RedisError:
        pytest.skip("Redis is not running")
    yield client
    client.close()


@pytest.fixture
def key_prefix(redis_client):
    """Throwaway key prefix, deleted after the test."""
    prefix = f"award_deposit_test_{uuid.uuid4().hex}"
    yield prefix
    for key in redis_client.scan_iter(match=f"{prefix}:*"):
        redis_client.delete(key)


@pytest.fixture
def repository(redis_client, key_prefix):
    """Redis content repository on a throwaway prefix."""
    return RedisContentRepository(redis_client=redis_client, key_prefix=key_prefix)


def with_file(repository, item, bitstream_id, content):
    """Attach a new ORIGINAL bundle holding one stored file."""
    repository.store_content(bitstream_id, content)
    item.add_bundle(Bundle(id=repository.next_id("bundle"), name="ORIGINAL", bitstreams=[Bitstream(id=bitstream_id)]))
    return item


def test_next_id_per_sequence(repository):
    """Each kind has its own sequence starting at 1."""
    assert repository.next_id("bundle") == 1
    assert repository.next_id("bundle") == 2
    assert repository.next_id("bitstream") == 1


def test_create_and_load_item(repository):
    """A created item is stored and loads back equal."""
    item = repository.create_item(submitter="jdoe")

    loaded = repository.load_item(item.id)

    assert loaded == item
    assert loaded.version == 1
    assert repository.load_item(item.id + 1000) is None


def test_commit_persists_graph_and_discards_removed_content(repository):
    """Dropped bitstreams lose their stored bytes on commit."""
    item = with_file(repository, repository.create_item(), 11, b"keep")
    with_file(repository, item, 12, b"drop")
    repository.commit(item)

    item.remove_bundle(item.bundles[1])
    repository.commit(item)

    stored = repository.load_item(item.id)
    assert [b.id for b in stored.all_bitstreams()] == [11]
    assert stored.version == 3
    assert repository.read_content(11) == b"keep"
    assert repository.read_content(12) is None


def test_concurrent_commit_is_refused(repository):
    """The second of two commits from the same loaded state fails and loses nothing."""
    item = repository.create_item()
    first = with_file(repository, repository.load_item(item.id), 101, b"first")
    second = with_file(repository, repository.load_item(item.id), 102, b"second")

    repository.commit(first)
    with pytest.raises(StaleItemError):
        repository.commit(second)

    assert [b.id for b in repository.load_item(item.id).all_bitstreams()] == [101]
    assert repository.read_content(101) == b"first"


def test_stats_and_health(repository):
    """Stats count the stored items."""
    repository.create_item()
    repository.create_item()

    assert repository.health_check()
    assert repository.get_stats()["total_items"] == 2


def test_session_repository(redis_client, key_prefix):
    """Session values round-trip as strings and the session expires."""
    sessions = RedisSessionRepository(redis_client=redis_client, key_prefix=key_prefix, ttl=60)

    sessions.set("abc", "locale-attribute", "fr")

    assert sessions.get("abc", "locale-attribute") == "fr"
    assert sessions.get("other", "locale-attribute") is None
    assert 0 < redis_client.ttl(f"{key_prefix}:session:abc") <= 60

    sessions.delete("abc", "locale-attribute")
    assert sessions.get("abc", "locale-attribute") is None


def test_commit_raises_when_watched_key_changes():
    """A write to the item between read and execute makes the commit stale."""
    client = mock.MagicMock()
    pipe = client.pipeline.return_value.__enter__.return_value
    pipe.get.return_value = json.dumps(item_to_dict(Item(id=5, version=1)))
    pipe.execute.side_effect = redis.WatchError("watched key changed")
    repository = RedisContentRepository(redis_client=client, key_prefix="test")
    item = Item(id=5, version=1)

    with pytest.raises(StaleItemError):
        repository.commit(item)

    pipe.watch.assert_called_once_with("test:item:5")
    assert item.version == 1


def test_commit_refuses_older_version():
    """A commit based on an older version never reaches MULTI."""
    client = mock.MagicMock()
    pipe = client.pipeline.return_value.__enter__.return_value
    pipe.get.return_value = json.dumps(item_to_dict(Item(id=5, version=3)))
    repository = RedisContentRepository(redis_client=client, key_prefix="test")

    with pytest.raises(StaleItemError):
        repository.commit(Item(id=5, version=2))

    pipe.multi.assert_not_called()


def test_health_check_handles_connection_errors():
    """An unreachable server is reported as unhealthy."""
    client = mock.MagicMock()
    client.ping.side_effect = redis.ConnectionError("refused")

    assert RedisContentRepository(redis_client=client, key_prefix="test").health_check() is False


def test_session_get_decodes_bytes():
    """Values come back as str whatever the client's decoding setting."""
    client = mock.MagicMock()
    client.hget.return_value = b"de_AT"
    sessions = RedisSessionRepository(redis_client=client, key_prefix="test", ttl=60)

    assert sessions.get("abc", "locale-attribute") == "de_AT"
    client.hget.assert_called_once_with("test:session:abc", "locale-attribute")
