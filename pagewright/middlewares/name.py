from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp


async def _dispatch(request: Request, call_next: RequestResponseEndpoint) -> Response:
    request.state.visitor_name = request.query_params.get("name", "")
    return await call_next(request)


def visitor_name(app: ASGIApp) -> ASGIApp:
    """Copy the ``name`` query parameter onto the request for page handlers."""
    return BaseHTTPMiddleware(app, dispatch=_dispatch)


def get_visitor_name(request: Request) -> str:
    return getattr(request.state, "visitor_name", "") or ""
