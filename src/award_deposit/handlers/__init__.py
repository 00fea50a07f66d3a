"""Handler layer for HTTP endpoints.

This layer contains the HTTP request/response handlers.
Handlers depend on services (business logic), not directly on repositories.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .locale_handler import LocaleHandler, parse_pipeline_locales
from .submission_handler import SubmissionHandler

__all__ = [
    "LocaleHandler",
    "SubmissionHandler",
    "parse_pipeline_locales",
]
