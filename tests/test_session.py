"""Tests for the session_check and invalidate_session middlewares.

The session store is an in-memory mock; requests go through a small FastAPI
app whose single route records the user it sees.
"""

import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from unittest.mock import AsyncMock, MagicMock

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient

from pagewright.middlewares.session import (
    SESSION_COOKIE_NAME,
    InvalidSessionCookieError,
    MissingSessionCookieError,
    MissingUserError,
    SessionInvalidationError,
    get_user,
    invalidate_session,
    session_check,
)

_USER = {"id": "user123", "name": "Test User"}


def _make_store(user=_USER, exchange_error=None, invalidate_error=None):
    store = MagicMock()
    store.exchange_session_id_for_user = AsyncMock(return_value=user, side_effect=exchange_error)
    store.invalidate_session = AsyncMock(side_effect=invalidate_error)
    return store


def _make_on_error():
    return MagicMock(return_value=PlainTextResponse("denied", status_code=401))


def _make_app():
    """Return an app whose route appends the request's user to ``seen``."""
    app = FastAPI()
    seen = []

    @app.get("/")
    async def index(request: Request):
        seen.append(get_user(request))
        return PlainTextResponse("next")

    return app, seen


def _cookie(value: str) -> dict:
    return {"cookie": f"{SESSION_COOKIE_NAME}={value}"}


class TestSessionCheckRequired:
    def test_valid_session_injects_user(self):
        store, on_error = _make_store(), _make_on_error()
        app, seen = _make_app()
        client = TestClient(session_check(store, True, on_error)(app))

        resp = client.get("/", headers=_cookie("valid-session-token"))

        assert resp.status_code == 200
        assert resp.text == "next"
        assert seen == [_USER]
        store.exchange_session_id_for_user.assert_awaited_once_with("valid-session-token")
        on_error.assert_not_called()

    def test_missing_cookie_calls_on_error_once(self):
        store, on_error = _make_store(), _make_on_error()
        app, seen = _make_app()
        client = TestClient(session_check(store, True, on_error)(app))

        resp = client.get("/")

        assert resp.status_code == 401
        assert resp.text == "denied"
        assert seen == []
        assert on_error.call_count == 1
        assert isinstance(on_error.call_args.args[1], MissingSessionCookieError)
        store.exchange_session_id_for_user.assert_not_called()

    def test_malformed_cookie_calls_on_error(self):
        store, on_error = _make_store(), _make_on_error()
        app, seen = _make_app()
        client = TestClient(session_check(store, True, on_error)(app))

        resp = client.get("/", headers=_cookie("bad\\value"))

        assert resp.status_code == 401
        assert seen == []
        assert isinstance(on_error.call_args.args[1], InvalidSessionCookieError)
        store.exchange_session_id_for_user.assert_not_called()

    def test_exchange_failure_calls_on_error_with_store_error(self):
        failure = LookupError("session exchange failed")
        store, on_error = _make_store(exchange_error=failure), _make_on_error()
        app, seen = _make_app()
        client = TestClient(session_check(store, True, on_error)(app))

        resp = client.get("/", headers=_cookie("token-for-failed-exchange"))

        assert resp.status_code == 401
        assert seen == []
        assert on_error.call_args.args[1] is failure

    def test_async_error_handler_is_awaited(self):
        store = _make_store()

        async def on_error(request, exc):
            return PlainTextResponse(type(exc).__name__, status_code=403)

        app, _ = _make_app()
        client = TestClient(session_check(store, True, on_error)(app))

        resp = client.get("/")

        assert resp.status_code == 403
        assert resp.text == "MissingSessionCookieError"


class TestSessionCheckOptional:
    def test_missing_cookie_proceeds_without_user(self):
        store, on_error = _make_store(), _make_on_error()
        app, seen = _make_app()
        client = TestClient(session_check(store, False, on_error)(app))

        resp = client.get("/")

        assert resp.status_code == 200
        assert seen == [None]
        on_error.assert_not_called()
        store.exchange_session_id_for_user.assert_not_called()

    def test_exchange_failure_proceeds_once_without_user(self):
        store = _make_store(exchange_error=RuntimeError("store down"))
        on_error = _make_on_error()
        app, seen = _make_app()
        client = TestClient(session_check(store, False, on_error)(app))

        resp = client.get("/", headers=_cookie("optional-token"))

        assert resp.status_code == 200
        assert seen == [None]
        on_error.assert_not_called()
        store.exchange_session_id_for_user.assert_awaited_once()

    def test_valid_session_injects_user(self):
        store, on_error = _make_store(), _make_on_error()
        app, seen = _make_app()
        client = TestClient(session_check(store, False, on_error)(app))

        client.get("/", headers=_cookie("optional-valid-token"))

        assert seen == [_USER]


class TestInvalidateSession:
    def _client(self, store, on_error, with_session_check=True):
        app, seen = _make_app()
        wrapped = invalidate_session(store, on_error)(app)
        if with_session_check:
            wrapped = session_check(store, True, on_error)(wrapped)
        return TestClient(wrapped), seen

    def test_success_expires_cookie_and_calls_next(self):
        store, on_error = _make_store(), _make_on_error()
        client, seen = self._client(store, on_error)

        resp = client.get("/", headers=_cookie("session_to_invalidate"))

        assert resp.status_code == 200
        assert seen == [_USER]
        on_error.assert_not_called()
        store.invalidate_session.assert_awaited_once_with(_USER, "session_to_invalidate")

        set_cookie = resp.headers["set-cookie"]
        assert set_cookie.startswith(f"{SESSION_COOKIE_NAME}=session_to_invalidate;")
        assert "HttpOnly" in set_cookie
        assert "Path=/" in set_cookie
        assert "samesite=lax" in set_cookie.lower()
        expires = re.search(r"expires=([^;]+)", set_cookie, re.IGNORECASE).group(1)
        assert parsedate_to_datetime(expires) < datetime.now(timezone.utc) - timedelta(hours=1)

    def test_missing_cookie_calls_on_error(self):
        store, on_error = _make_store(), _make_on_error()
        client, seen = self._client(store, on_error, with_session_check=False)

        resp = client.get("/")

        assert resp.status_code == 401
        assert seen == []
        assert isinstance(on_error.call_args.args[1], MissingSessionCookieError)
        store.invalidate_session.assert_not_called()

    def test_missing_user_calls_on_error_without_store_call(self):
        store, on_error = _make_store(), _make_on_error()
        client, seen = self._client(store, on_error, with_session_check=False)

        resp = client.get("/", headers=_cookie("session_with_no_user"))

        assert resp.status_code == 401
        assert seen == []
        exc = on_error.call_args.args[1]
        assert isinstance(exc, MissingUserError)
        assert "user object is None" in str(exc)
        store.invalidate_session.assert_not_called()
        assert "set-cookie" not in resp.headers

    def test_store_failure_is_wrapped(self):
        failure = RuntimeError("session store failed to invalidate")
        store, on_error = _make_store(invalidate_error=failure), _make_on_error()
        client, seen = self._client(store, on_error)

        resp = client.get("/", headers=_cookie("session_store_fail"))

        assert resp.status_code == 401
        assert seen == []
        exc = on_error.call_args.args[1]
        assert isinstance(exc, SessionInvalidationError)
        assert "failed to invalidate session" in str(exc)
        assert exc.__cause__ is failure
        assert "set-cookie" not in resp.headers
