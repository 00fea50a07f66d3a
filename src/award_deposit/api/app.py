import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware

from award_deposit.api.dependencies import (
    LocaleHandlerDep,
    SubmissionHandlerDep,
    clear_state,
    create_stores,
    init_state,
)
from award_deposit.config import settings
from award_deposit.dto import (
    CreateSubmissionRequest,
    FormatItem,
    HealthCheckResponse,
    LocaleResponse,
    SubmissionResponse,
    UploadStepResponse,
)
from award_deposit.logs import LoggingConfigurator
from award_deposit.protocols import ContentStore, SessionStore

logger = logging.getLogger(__name__)


def create_app(
    repository: ContentStore | None = None,
    sessions: SessionStore | None = None,
) -> FastAPI:
    """Create the API application.

    Args:
        repository: Content storage backend. If None, chosen from settings.
        sessions: Session storage backend. If None, chosen from settings.

    Returns:
        The FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        LoggingConfigurator.configure(log_level=settings.log_level)
        logger.info("Starting Award Deposit API...")
        content_store, session_store = repository, sessions
        if content_store is None or session_store is None:
            default_content, default_sessions = create_stores()
            content_store = content_store or default_content
            session_store = session_store or default_sessions

        init_state(app, content_store, session_store)
        if not content_store.health_check():
            logger.warning("Storage backend is not reachable; make sure Redis is running")

        yield

        clear_state(app)
        logger.info("Shutting down Award Deposit API...")

    app = FastAPI(
        title="Award Deposit API",
        description="Upload step and locale resolution for library award submissions",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        """Attach the session id and the resolved locale to every request."""
        session_id = request.cookies.get(settings.session_cookie)
        is_new_session = not session_id
        if is_new_session:
            session_id = uuid.uuid4().hex
        request.state.session_id = session_id

        locale_handler = getattr(request.app.state, "locale_handler", None)
        locale = locale_handler.resolve(request, session_id) if locale_handler else None

        response = await call_next(request)

        if is_new_session:
            response.set_cookie(settings.session_cookie, session_id, httponly=True, samesite="lax")
        if locale_handler is not None and locale is not None:
            locale_handler.store_cookie(response, locale)
            response.headers["Content-Language"] = str(locale).replace("_", "-")
        return response

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Award Deposit API",
            "version": "0.1.0",
            "description": "Upload step and locale resolution for library award submissions",
            "endpoints": {
                "submissions": "/submissions",
                "formats": "/formats",
                "locale": "/locale",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: SubmissionHandlerDep) -> dict[str, Any]:
        """Health check endpoint."""
        result = await handler.health_check()
        if not result["storage_healthy"]:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Storage backend is not reachable",
            )
        return result

    @app.get("/locale", response_model=LocaleResponse)
    async def get_locale(request: Request, handler: LocaleHandlerDep) -> LocaleResponse:
        """Locale resolved for this request."""
        return await handler.get_locale(request)

    @app.get("/formats", response_model=list[FormatItem])
    async def list_formats(handler: SubmissionHandlerDep) -> list[FormatItem]:
        """Formats a submitter may declare for a file."""
        return await handler.list_formats()

    @app.post("/submissions", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
    async def create_submission(
        request: CreateSubmissionRequest,
        handler: SubmissionHandlerDep,
    ) -> SubmissionResponse:
        """Start a new submission."""
        return await handler.create_submission(request)

    @app.get("/submissions/{item_id}", response_model=SubmissionResponse)
    async def get_submission(item_id: int, request: Request, handler: SubmissionHandlerDep) -> SubmissionResponse:
        """Files of a submission and what is still missing."""
        return await handler.get_submission(request, item_id)

    @app.post("/submissions/{item_id}/upload", response_model=UploadStepResponse)
    async def upload_step(item_id: int, request: Request, handler: SubmissionHandlerDep) -> UploadStepResponse:
        """
        Run the upload step.

        Accepts a multipart form (file uploads plus fields) or a url-encoded
        form (buttons and fields only).

        Returns:
            The step's outcome code.
        """
        return await handler.upload_step(request, item_id)

    @app.get("/submissions/{item_id}/bitstreams/{bitstream_id}/content")
    async def get_content(item_id: int, bitstream_id: int, handler: SubmissionHandlerDep) -> Response:
        """Download a submitted file."""
        return await handler.get_content(item_id, bitstream_id)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "award_deposit.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
