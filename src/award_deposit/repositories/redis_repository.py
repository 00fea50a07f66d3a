"""Redis implementation of ContentStore.

Each item graph is stored as one JSON document; bitstream bytes are stored
under their own keys so listing an item never loads file content.

Key layout (``prefix`` defaults to ``settings.key_prefix``):
    <prefix>:item:<id>          JSON item graph
    <prefix>:content:<id>       raw bitstream bytes
    <prefix>:seq:<kind>         id sequences (INCR)
"""

import json
import logging
import time
from dataclasses import asdict
from typing import Any

import redis

from award_deposit.config import get_redis_client, settings
from award_deposit.entities import Bitstream, Bundle, Item

from .errors import StaleItemError

logger = logging.getLogger(__name__)


def item_to_dict(item: Item) -> dict[str, Any]:
    """Convert an item graph to JSON-compatible data."""
    return asdict(item)


def item_from_dict(data: dict[str, Any]) -> Item:
    """Rebuild an item graph from ``item_to_dict`` output."""
    bundles = [
        Bundle(
            id=bundle["id"],
            name=bundle["name"],
            bitstreams=[Bitstream(**bitstream) for bitstream in bundle.get("bitstreams", [])],
            primary_bitstream_id=bundle.get("primary_bitstream_id"),
        )
        for bundle in data.get("bundles", [])
    ]
    return Item(
        id=data["id"],
        bundles=bundles,
        submitter=data.get("submitter"),
        last_modified=data.get("last_modified", 0.0),
        version=data.get("version", 0),
    )


class RedisContentRepository:
    """Redis implementation of the ContentStore protocol.

    This class satisfies the protocol through structural typing - no
    explicit inheritance needed.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
    ) -> None:
        """Initialize the Redis content repository.

        Args:
            redis_client: Redis client instance. If None, creates default.
            key_prefix: Prefix of every key written. Defaults to settings.
        """
        self._client = redis_client or get_redis_client()
        self._prefix = key_prefix or settings.key_prefix

    @classmethod
    def create(cls, key_prefix: str | None = None) -> "RedisContentRepository":
        """Factory method to create RedisContentRepository with defaults.

        Args:
            key_prefix: Key prefix. If None, uses settings.

        Returns:
            Configured RedisContentRepository
        """
        return cls(key_prefix=key_prefix)

    def _item_key(self, item_id: int) -> str:
        return f"{self._prefix}:item:{item_id}"

    def _content_key(self, bitstream_id: int) -> str:
        return f"{self._prefix}:content:{bitstream_id}"

    def next_id(self, kind: str) -> int:
        """Allocate an id from the ``kind`` sequence.

        Args:
            kind: Sequence name

        Returns:
            The next identifier
        """
        return int(self._client.incr(f"{self._prefix}:seq:{kind}"))  # type: ignore[arg-type]

    def create_item(self, submitter: str | None = None) -> Item:
        """Create and commit an empty item.

        Args:
            submitter: Optional submitter identity

        Returns:
            The new item
        """
        item = Item(id=self.next_id("item"), submitter=submitter)
        self.commit(item)
        logger.info("Created item %s", item.id)
        return item

    def load_item(self, item_id: int) -> Item | None:
        """Load the last committed state of an item.

        Args:
            item_id: The item identifier

        Returns:
            The item, or None if it does not exist
        """
        raw = self._client.get(self._item_key(item_id))
        if raw is None:
            return None
        return item_from_dict(json.loads(raw))  # type: ignore[arg-type]

    def store_content(self, bitstream_id: int, data: bytes) -> None:
        self._client.set(self._content_key(bitstream_id), data)

    def read_content(self, bitstream_id: int) -> bytes | None:
        return self._client.get(self._content_key(bitstream_id))  # type: ignore[return-value]

    def commit(self, item: Item) -> None:
        """Persist the item graph and drop content of removed bitstreams.

        The item key is watched while the stored version is compared, so a
        concurrent commit in between makes this one fail instead of
        overwriting it.

        Args:
            item: The item to persist

        Raises:
            StaleItemError: If the stored item is newer than the one loaded
        """
        key = self._item_key(item.id)
        current_ids = {b.id for b in item.all_bitstreams()}

        with self._client.pipeline() as pipe:
            try:
                pipe.watch(key)
                raw = pipe.get(key)
                previous = item_from_dict(json.loads(raw)) if raw is not None else None
                stored_version = previous.version if previous is not None else 0
                if stored_version != item.version:
                    raise StaleItemError(
                        f"Item {item.id} is at version {stored_version}, commit was based on {item.version}"
                    )

                dropped = []
                if previous is not None:
                    dropped = [b.id for b in previous.all_bitstreams() if b.id not in current_ids]

                data = item_to_dict(item)
                data["last_modified"] = time.time()
                data["version"] = item.version + 1

                pipe.multi()
                pipe.set(key, json.dumps(data))
                for bitstream_id in dropped:
                    pipe.delete(self._content_key(bitstream_id))
                pipe.execute()
            except redis.WatchError as e:
                raise StaleItemError(f"Item {item.id} changed during commit") from e

        item.last_modified = data["last_modified"]
        item.version = data["version"]
        if dropped:
            logger.debug("Item %s: discarded content of bitstreams %s", item.id, dropped)

    def count_items(self) -> int:
        """Count stored items.

        Returns:
            Total number of items
        """
        count = 0
        for _ in self._client.scan_iter(match=f"{self._prefix}:item:*"):
            count += 1
        return count

    def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            result = self._client.ping()
            return bool(result)
        except redis.RedisError:
            return False

    def get_stats(self) -> dict:
        """Get repository statistics.

        Returns:
            Dictionary with stats
        """
        return {
            "backend": "redis",
            "key_prefix": self._prefix,
            "total_items": self.count_items(),
        }

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client


class RedisSessionRepository:
    """Redis implementation of the SessionStore protocol.

    Each session is one hash expiring ``ttl`` seconds after its last write.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
        ttl: int | None = None,
    ) -> None:
        """Initialize the Redis session repository.

        Args:
            redis_client: Redis client instance. If None, creates default.
            key_prefix: Prefix of every key written. Defaults to settings.
            ttl: Session lifetime in seconds. Defaults to settings.
        """
        self._client = redis_client or get_redis_client()
        self._prefix = key_prefix or settings.key_prefix
        self._ttl = ttl or settings.session_ttl

    @classmethod
    def create(cls, ttl: int | None = None) -> "RedisSessionRepository":
        return cls(ttl=ttl)

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}:session:{session_id}"

    def get(self, session_id: str, name: str) -> str | None:
        value = self._client.hget(self._key(session_id), name)
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes) else str(value)

    def set(self, session_id: str, name: str, value: str) -> None:
        key = self._key(session_id)
        pipe = self._client.pipeline()
        pipe.hset(key, name, value)
        pipe.expire(key, self._ttl)
        pipe.execute()

    def delete(self, session_id: str, name: str) -> None:
        self._client.hdel(self._key(session_id), name)
