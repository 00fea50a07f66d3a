"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from award_deposit.config import settings
from award_deposit.formats import FormatRegistry
from award_deposit.handlers import LocaleHandler, SubmissionHandler, parse_pipeline_locales
from award_deposit.protocols import ContentStore, SessionStore
from award_deposit.repositories import (
    MemoryContentRepository,
    MemorySessionStore,
    RedisContentRepository,
    RedisSessionRepository,
)
from award_deposit.services import LocaleResolver, SubmissionService, UploadStepService

logger = logging.getLogger(__name__)


def get_submission_handler(request: Request) -> SubmissionHandler:
    """Dependency injection for SubmissionHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The SubmissionHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "submission_handler", None)
    if handler is None:
        raise RuntimeError("SubmissionHandler not initialized. Check lifespan setup.")
    return handler


def get_locale_handler(request: Request) -> LocaleHandler:
    """Dependency injection for LocaleHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The LocaleHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "locale_handler", None)
    if handler is None:
        raise RuntimeError("LocaleHandler not initialized. Check lifespan setup.")
    return handler


def create_stores() -> tuple[ContentStore, SessionStore]:
    """Create the storage backends selected by ``STORAGE_BACKEND``."""
    if settings.uses_memory_backend:
        return MemoryContentRepository(), MemorySessionStore()
    return RedisContentRepository.create(), RedisSessionRepository.create()


def init_state(
    app: FastAPI,
    repository: ContentStore,
    sessions: SessionStore,
    registry: FormatRegistry | None = None,
) -> None:
    """Build every layer and store it in app.state.

    1. Repositories (data access) - given
    2. Services (business logic) - upload step, submissions, locale
    3. Handlers (HTTP endpoints) - app.state.submission_handler, app.state.locale_handler

    Args:
        app: The FastAPI application instance
        repository: Content storage backend
        sessions: Session storage backend
        registry: Format registry. If None, uses the built-in formats.
    """
    upload_service = UploadStepService.create(repository=repository, registry=registry)
    submission_service = SubmissionService(repository=repository, sessions=sessions)
    resolver = LocaleResolver.create()

    app.state.repository = repository
    app.state.sessions = sessions
    app.state.upload_service = upload_service
    app.state.submission_service = submission_service
    app.state.submission_handler = SubmissionHandler(
        submission_service=submission_service,
        upload_service=upload_service,
        max_upload_size=settings.max_upload_size,
    )
    app.state.locale_handler = LocaleHandler(
        resolver=resolver,
        sessions=sessions,
        pipeline_parameters=parse_pipeline_locales(settings.pipeline_locales),
        store_in_session=settings.locale_store_in_session,
        store_in_cookie=settings.locale_store_in_cookie,
    )

    logger.info("Storage backend: %s", settings.storage_backend)
    logger.info("Default locale: %s", resolver.default_locale)
    logger.info("Supported locales: %s", resolver.validator.supported or "any")


def clear_state(app: FastAPI) -> None:
    """Remove everything ``init_state`` stored."""
    for name in (
        "locale_handler",
        "submission_handler",
        "submission_service",
        "upload_service",
        "sessions",
        "repository",
    ):
        if hasattr(app.state, name):
            delattr(app.state, name)


# Type aliases for cleaner dependency injection
SubmissionHandlerDep = Annotated[SubmissionHandler, Depends(get_submission_handler)]
LocaleHandlerDep = Annotated[LocaleHandler, Depends(get_locale_handler)]
