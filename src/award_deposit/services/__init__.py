"""Service layer for business logic.

Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from award_deposit.repositories import MemoryContentRepository
    from award_deposit.services import UploadStepService

    service = UploadStepService.create(repository=MemoryContentRepository())
    ```
"""

from .locale_service import LocaleResolver, LocaleSources, LocaleValidator, parse_accept_language, parse_locale
from .submission_service import SubmissionService
from .upload_service import (
    HIDDEN_BITSTREAMS,
    REQUIRED_BITSTREAMS,
    UploadStatus,
    UploadStepService,
    list_needed_bitstreams,
)

__all__ = [
    "LocaleResolver",
    "LocaleSources",
    "LocaleValidator",
    "parse_accept_language",
    "parse_locale",
    "SubmissionService",
    "HIDDEN_BITSTREAMS",
    "REQUIRED_BITSTREAMS",
    "UploadStatus",
    "UploadStepService",
    "list_needed_bitstreams",
]
