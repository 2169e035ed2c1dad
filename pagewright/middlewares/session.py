"""Session-cookie middleware.

:func:`session_check` exchanges the ``session_id`` cookie for a user through a
caller-supplied :class:`SessionStore` and exposes it to downstream handlers
via :func:`get_user`.  :func:`invalidate_session` ends the session (logout)
and expires the cookie on the client.

Neither middleware retries or renders errors itself: every failure is handed
to the ``on_error`` callback, whose return value is sent as the response.
"""

import inspect
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "session_id"

# Bytes Go's net/http and most browsers accept in a cookie value.
_COOKIE_VALUE_RE = re.compile(r'^[\x20-\x21\x23-\x3A\x3C-\x5B\x5D-\x7E]*$')

# How far in the past the expiry of an invalidated cookie is set.
_EXPIRED_COOKIE_AGE = timedelta(hours=2)

ErrorHandler = Callable[[Request, Exception], Union[Response, Awaitable[Response]]]


class SessionStore(Protocol):
    async def exchange_session_id_for_user(self, session_id: str) -> Any:
        """Return the user the session belongs to; raise if there is none."""

    async def invalidate_session(self, user: Any, session_id: str) -> None:
        """Invalidate the session, e.g. on logout; raise on failure."""


class MissingSessionCookieError(LookupError):
    pass


class InvalidSessionCookieError(ValueError):
    pass


class MissingUserError(RuntimeError):
    pass


class SessionInvalidationError(RuntimeError):
    pass


def get_user(request: Request) -> Optional[Any]:
    """Return the user attached by :func:`session_check`, or ``None``."""
    return getattr(request.state, "user", None)


def session_check(
    store: SessionStore,
    required: bool,
    on_error: ErrorHandler,
) -> Callable[[ASGIApp], ASGIApp]:
    """Return a middleware factory that resolves the session user.

    When *required* is false, requests without a usable session simply reach
    the next handler with no user attached.  When it is true, ``on_error`` is
    called instead and the next handler is skipped.
    """

    async def dispatch(request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            session_id = read_session_cookie(request)
            user = await store.exchange_session_id_for_user(session_id)
        except Exception as exc:
            if not required:
                logger.debug("No session user for %s: %s", request.url.path, exc)
                return await call_next(request)
            logger.info("Session check failed for %s: %s", request.url.path, exc)
            return await _call_error_handler(on_error, request, exc)

        request.state.user = user
        return await call_next(request)

    def middleware(app: ASGIApp) -> ASGIApp:
        return BaseHTTPMiddleware(app, dispatch=dispatch)

    return middleware


def invalidate_session(store: SessionStore, on_error: ErrorHandler) -> Callable[[ASGIApp], ASGIApp]:
    """Return a middleware factory that invalidates the current session.

    Must run behind :func:`session_check` so the user is known.  On success
    the next handler runs and its response carries an already-expired
    ``session_id`` cookie so the client drops it.
    """

    async def dispatch(request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            session_id = read_session_cookie(request)
        except (MissingSessionCookieError, InvalidSessionCookieError) as exc:
            return await _call_error_handler(on_error, request, exc)

        user = get_user(request)
        if user is None:
            exc = MissingUserError("user object is None for an authorized request")
            return await _call_error_handler(on_error, request, exc)

        try:
            await store.invalidate_session(user, session_id)
        except Exception as exc:
            logger.error("Failed to invalidate session for %s: %s", request.url.path, exc)
            wrapped = SessionInvalidationError(f"failed to invalidate session: {exc}")
            wrapped.__cause__ = exc
            return await _call_error_handler(on_error, request, wrapped)

        response = await call_next(request)
        response.set_cookie(
            SESSION_COOKIE_NAME,
            session_id,
            expires=datetime.now(timezone.utc) - _EXPIRED_COOKIE_AGE,
            path="/",
            httponly=True,
            samesite="lax",
        )
        return response

    def middleware(app: ASGIApp) -> ASGIApp:
        return BaseHTTPMiddleware(app, dispatch=dispatch)

    return middleware


def read_session_cookie(request: Request) -> str:
    """Return the ``session_id`` cookie value.

    Raises:
        MissingSessionCookieError: if the request has no session cookie.
        InvalidSessionCookieError: if the value contains characters that are
            not allowed in a cookie.
    """
    value = request.cookies.get(SESSION_COOKIE_NAME)
    if value is None:
        raise MissingSessionCookieError(f"named cookie not present: {SESSION_COOKIE_NAME}")
    if not _COOKIE_VALUE_RE.match(value):
        raise InvalidSessionCookieError(f"invalid value for cookie {SESSION_COOKIE_NAME}")
    return value


async def _call_error_handler(on_error: ErrorHandler, request: Request, exc: Exception) -> Response:
    result = on_error(request, exc)
    if inspect.isawaitable(result):
        result = await result
    return result
