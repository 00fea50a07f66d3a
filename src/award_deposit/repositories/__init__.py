"""Repository layer for data access.

This layer abstracts external dependencies (Redis) behind protocol-based
interfaces. This enables:
- Easy swapping of implementations (Redis -> in-memory, a database, etc.)
- Unit testing with in-memory implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from award_deposit.protocols import ContentStore, SessionStore

from .errors import StaleItemError, StorageError
from .memory_repository import MemoryContentRepository, MemorySessionStore
from .redis_repository import RedisContentRepository, RedisSessionRepository

__all__ = [
    "ContentStore",
    "SessionStore",
    "MemoryContentRepository",
    "MemorySessionStore",
    "RedisContentRepository",
    "RedisSessionRepository",
    "StaleItemError",
    "StorageError",
]
