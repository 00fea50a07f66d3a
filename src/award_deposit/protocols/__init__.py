"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of storage backends (Redis, in-memory, a relational store)
- Unit testing with in-memory implementations
- Clear separation of concerns

Usage:
    ```python
    from award_deposit.protocols import ContentStore, SessionStore

    repo: ContentStore = RedisContentRepository.create()
    repo: ContentStore = MemoryContentRepository()
    ```
"""

from .content_store import ContentStore
from .session_store import SessionStore

__all__ = [
    "ContentStore",
    "SessionStore",
]
