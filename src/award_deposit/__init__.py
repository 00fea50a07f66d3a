"""Award Deposit - upload step and locale resolution for award submissions.

This package provides a layered architecture:

Layers:
    - protocols: Interface contracts (ContentStore, SessionStore)
    - repositories: Data access implementations (Redis, in-memory)
    - services: Business logic (upload step, submissions, locale resolution)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from award_deposit.repositories import MemoryContentRepository
    from award_deposit.services import UploadStepService, UploadStatus

    service = UploadStepService.create(repository=MemoryContentRepository())
    ```

For HTTP API:
    ```python
    from award_deposit.api.app import app
    ```
"""

from award_deposit.config import get_redis_client, settings
from award_deposit.entities import Bitstream, BitstreamFormat, Bundle, Item, Locale, StepRequest, SubmissionInfo
from award_deposit.formats import FormatRegistry
from award_deposit.handlers import LocaleHandler, SubmissionHandler
from award_deposit.protocols import ContentStore, SessionStore
from award_deposit.repositories import (
    MemoryContentRepository,
    MemorySessionStore,
    RedisContentRepository,
    RedisSessionRepository,
)
from award_deposit.services import (
    LocaleResolver,
    LocaleValidator,
    SubmissionService,
    UploadStatus,
    UploadStepService,
)

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "ContentStore",
    "SessionStore",
    # Services (business logic)
    "LocaleResolver",
    "LocaleValidator",
    "SubmissionService",
    "UploadStatus",
    "UploadStepService",
    "FormatRegistry",
    # Handlers (HTTP)
    "LocaleHandler",
    "SubmissionHandler",
    # Repositories (data access)
    "MemoryContentRepository",
    "MemorySessionStore",
    "RedisContentRepository",
    "RedisSessionRepository",
    # Entities (domain models)
    "Bitstream",
    "BitstreamFormat",
    "Bundle",
    "Item",
    "Locale",
    "StepRequest",
    "SubmissionInfo",
]
