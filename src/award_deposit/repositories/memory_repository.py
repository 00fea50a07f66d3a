"""In-process implementations of ContentStore and SessionStore.

Used for tests and for running the service without Redis
(``STORAGE_BACKEND=memory``). Loaded items are deep copies, so uncommitted
changes stay private to the caller just as with the Redis backend.
"""

import copy
import itertools
import threading
import time
from collections import defaultdict

from award_deposit.entities import Item

from .errors import StaleItemError


class MemoryContentRepository:
    """Dictionary-backed implementation of the ContentStore protocol."""

    def __init__(self) -> None:
        self._items: dict[int, Item] = {}
        self._content: dict[int, bytes] = {}
        self._sequences: dict[str, itertools.count] = defaultdict(lambda: itertools.count(1))
        self._lock = threading.Lock()

    def next_id(self, kind: str) -> int:
        with self._lock:
            return next(self._sequences[kind])

    def create_item(self, submitter: str | None = None) -> Item:
        item = Item(id=self.next_id("item"), submitter=submitter)
        self.commit(item)
        return item

    def load_item(self, item_id: int) -> Item | None:
        with self._lock:
            item = self._items.get(item_id)
            return copy.deepcopy(item) if item is not None else None

    def store_content(self, bitstream_id: int, data: bytes) -> None:
        with self._lock:
            self._content[bitstream_id] = bytes(data)

    def read_content(self, bitstream_id: int) -> bytes | None:
        with self._lock:
            return self._content.get(bitstream_id)

    def commit(self, item: Item) -> None:
        current_ids = {b.id for b in item.all_bitstreams()}
        with self._lock:
            previous = self._items.get(item.id)
            stored_version = previous.version if previous is not None else 0
            if stored_version != item.version:
                raise StaleItemError(
                    f"Item {item.id} is at version {stored_version}, commit was based on {item.version}"
                )

            if previous is not None:
                for bitstream in previous.all_bitstreams():
                    if bitstream.id not in current_ids:
                        self._content.pop(bitstream.id, None)
            item.last_modified = time.time()
            item.version += 1
            self._items[item.id] = copy.deepcopy(item)

    def health_check(self) -> bool:
        return True

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "backend": "memory",
                "total_items": len(self._items),
                "stored_contents": len(self._content),
            }


class MemorySessionStore:
    """Dictionary-backed implementation of the SessionStore protocol.

    Sessions never expire.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, dict[str, str]] = defaultdict(dict)
        self._lock = threading.Lock()

    def get(self, session_id: str, name: str) -> str | None:
        with self._lock:
            return self._sessions.get(session_id, {}).get(name)

    def set(self, session_id: str, name: str, value: str) -> None:
        with self._lock:
            self._sessions[session_id][name] = value

    def delete(self, session_id: str, name: str) -> None:
        with self._lock:
            self._sessions.get(session_id, {}).pop(name, None)
