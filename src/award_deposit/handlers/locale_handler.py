"""HTTP handler for locale resolution.

Collects the locale sources of a request, resolves the locale and stores
it in request-scoped state (``request.state.locale``) for everything that
renders the response. Optionally remembers it in the session and a cookie.
"""

import logging
from collections.abc import Mapping

import redis
from fastapi import Request, Response

from award_deposit.dto import LocaleResponse
from award_deposit.entities import Locale
from award_deposit.protocols import SessionStore
from award_deposit.services import LocaleResolver, LocaleSources
from award_deposit.services.locale_service import PIPELINE_LOCALE_PARAMETER

logger = logging.getLogger(__name__)


def parse_pipeline_locales(pairs: tuple[str, ...] | list[str] | None) -> dict[str, dict[str, str]]:
    """Turn "<path prefix>=<tag>" pairs into per-route pipeline parameters.

    Pairs without "=" are ignored.
    """
    routes: dict[str, dict[str, str]] = {}
    for pair in pairs or ():
        prefix, sep, tag = pair.partition("=")
        if sep and prefix.strip() and tag.strip():
            routes[prefix.strip()] = {PIPELINE_LOCALE_PARAMETER: tag.strip()}
    return routes


class LocaleHandler:
    """Resolves and exposes the locale of each request.

    Example:
        ```python
        handler = LocaleHandler(resolver=LocaleResolver.create(), sessions=MemorySessionStore())

        @app.get("/locale", response_model=LocaleResponse)
        async def get_locale(request: Request):
            return await handler.get_locale(request)
        ```
    """

    def __init__(
        self,
        resolver: LocaleResolver,
        sessions: SessionStore,
        pipeline_parameters: Mapping[str, Mapping[str, str]] | None = None,
        store_in_session: bool = False,
        store_in_cookie: bool = False,
    ) -> None:
        """Initialize the locale handler.

        Args:
            resolver: The locale fallback chain (required).
            sessions: Session storage for the session attribute (required).
            pipeline_parameters: Pipeline parameters per route path prefix.
            store_in_session: Remember the resolved locale in the session.
            store_in_cookie: Remember the resolved locale in a cookie.
        """
        self._resolver = resolver
        self._sessions = sessions
        self._pipeline_parameters = dict(pipeline_parameters or {})
        self._store_in_session = store_in_session
        self._store_in_cookie = store_in_cookie

    def pipeline_parameters_for(self, path: str) -> Mapping[str, str]:
        """Parameters of the longest route prefix matching the path."""
        best = ""
        for prefix in self._pipeline_parameters:
            if path.startswith(prefix) and len(prefix) > len(best):
                best = prefix
        return self._pipeline_parameters.get(best, {}) if best else {}

    def _session_value(self, session_id: str | None) -> str | None:
        if not session_id:
            return None
        try:
            return self._sessions.get(session_id, self._resolver.attribute)
        except redis.RedisError as e:
            logger.warning("Session store unavailable, skipping session locale: %s", e)
            return None

    def sources_for(self, request: Request, session_id: str | None) -> LocaleSources:
        return LocaleSources(
            request_parameter=request.query_params.get(self._resolver.attribute),
            session_value=self._session_value(session_id),
            cookies=request.cookies,
            pipeline_parameters=self.pipeline_parameters_for(request.url.path),
            accept_language=request.headers.get("accept-language"),
        )

    def resolve(self, request: Request, session_id: str | None) -> Locale:
        """Resolve the request locale and store it on the request.

        Args:
            request: The incoming request
            session_id: The client's session, if any

        Returns:
            The resolved locale
        """
        locale = self._resolver.resolve(self.sources_for(request, session_id))
        request.state.locale = locale
        if self._store_in_session and session_id:
            try:
                self._sessions.set(session_id, self._resolver.attribute, str(locale))
            except redis.RedisError as e:
                logger.warning("Session store unavailable, locale not remembered: %s", e)
        return locale

    def store_cookie(self, response: Response, locale: Locale) -> None:
        if self._store_in_cookie:
            response.set_cookie(self._resolver.attribute, str(locale), samesite="lax")

    async def get_locale(self, request: Request) -> LocaleResponse:
        """Handle GET /locale requests.

        Args:
            request: The incoming request, already through the locale middleware

        Returns:
            LocaleResponse with the four derived locale fields
        """
        locale = getattr(request.state, "locale", None)
        if locale is None:
            locale = self.resolve(request, getattr(request.state, "session_id", None))
        return LocaleResponse(**locale.as_dict())
