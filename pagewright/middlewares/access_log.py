import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


async def _dispatch(request: Request, call_next: RequestResponseEndpoint) -> Response:
    start = time.perf_counter()
    logger.info("Started %s %s", request.method, request.url.path)
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "Completed %s %s in %.1fms",
        request.method,
        request.url.path,
        elapsed_ms,
        extra={"status_code": response.status_code},
    )
    return response


def access_log(app: ASGIApp) -> ASGIApp:
    """Log the start and completion of every request."""
    return BaseHTTPMiddleware(app, dispatch=_dispatch)
