"""Web server that composes pages, static assets and middlewares.

Pages are registered up front with :meth:`WebServer.register_page` (or
:meth:`WebServer.serve_content`).  The first access to
:attr:`WebServer.asgi_app`, or a call to :meth:`WebServer.start`, freezes the
route table; pages registered afterwards are not served.

Page lifecycle
--------------
1. The page's content provider is called with the request and returns a
   :class:`~pagewright.models.page.PageContent`.
2. The content is wrapped in the configured layout together with the page's
   :class:`~pagewright.models.head.HeadViewModel`.
3. The resulting document is sent as ``text/html; charset=utf-8``.

A provider may raise :class:`~fastapi.HTTPException` to choose the status
code itself.  Any other provider error is logged and answered with an empty
500 response; a layout failure is logged and answered with a plain-text 500.
"""

import asyncio
import contextlib
import inspect
import logging
from typing import Iterable, Iterator, List, Optional, Tuple

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException
from starlette.types import ASGIApp

from pagewright.models.config import ServerSettings, WebServerConfig
from pagewright.models.page import ContentProvider, PageContent, WebPage

logger = logging.getLogger(__name__)


class ServerStartError(RuntimeError):
    pass


class ServerShutdownError(RuntimeError):
    pass


class _ManagedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the caller.

    :meth:`WebServer.start` stops it through ``should_exit`` when its shutdown
    event fires.
    """

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class WebServer:
    def __init__(self, config: WebServerConfig, settings: Optional[ServerSettings] = None) -> None:
        self.config = config
        self.settings = settings or ServerSettings()
        self.router = APIRouter()
        self._static_mounts: List[Tuple[str, StaticFiles]] = []
        self._asgi_app: Optional[ASGIApp] = None
        self.limiter: Optional[Limiter] = None
        if config.rate_limit:
            self.limiter = Limiter(key_func=get_remote_address)

        for asset in config.static_assets:
            if not asset.url_path or asset.directory is None:
                continue
            prefix = _normalize_prefix(asset.url_path)
            try:
                files = StaticFiles(directory=asset.directory)
            except RuntimeError as exc:
                logger.error("Skipping static assets for %s: %s", prefix or "/", exc)
                continue
            self._static_mounts.append((prefix, files))
            logger.info(
                "Serving static assets from URL path '%s/'",
                prefix,
                extra={"directory": str(asset.directory)},
            )

    # ------------------------------------------------------------------
    # Route registration
    # ------------------------------------------------------------------

    def serve_content(self, path: str, content_provider: Optional[ContentProvider]) -> None:
        """Serve the page built by *content_provider* at *path* (GET)."""
        if not path or content_provider is None:
            logger.warning(
                "Skipping registration of page with empty path or no content provider",
                extra={"path": path},
            )
            return

        layout = self.config.layout

        async def render_page(request: Request) -> Response:
            try:
                page = await _call_provider(content_provider, request)
            except HTTPException:
                raise
            except Exception:
                logger.exception("Error in content provider for %s", path)
                return Response(status_code=500)

            try:
                document = layout(page.metadata, page.content)
            except Exception:
                logger.exception("Error rendering page %s", path)
                return PlainTextResponse("Internal Server Error", status_code=500)

            return HTMLResponse(document)

        # slowapi keys limits and counters by the endpoint's qualified name.
        render_page.__name__ = render_page.__qualname__ = f"render_page[{path}]"
        endpoint = render_page
        if self.limiter is not None:
            endpoint = self.limiter.limit(self.config.rate_limit)(render_page)

        logger.info("Registering page at path: %s", path)
        self.router.add_api_route(
            path,
            endpoint,
            methods=["GET"],
            response_class=HTMLResponse,
            response_model=None,
            include_in_schema=False,
        )

    def register_page(self, page: WebPage) -> None:
        self.serve_content(page.path, page.content_provider)

    def register_pages(self, pages: Iterable[WebPage]) -> None:
        for page in pages:
            self.register_page(page)

    # ------------------------------------------------------------------
    # Application assembly and lifecycle
    # ------------------------------------------------------------------

    @property
    def asgi_app(self) -> ASGIApp:
        """The complete application: routes, static files and global middlewares."""
        if self._asgi_app is None:
            self._asgi_app = self._build_app()
        return self._asgi_app

    def _build_app(self) -> ASGIApp:
        app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
        app.add_exception_handler(Exception, _unhandled_exception_handler)
        app.include_router(self.router)
        for prefix, files in self._static_mounts:
            app.mount(prefix, files)

        if self.limiter is not None:
            app.state.limiter = self.limiter
            app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

        # Wrap in reverse so the first registered middleware runs first.
        handler: ASGIApp = app
        for middleware in reversed(self.config.global_middlewares):
            handler = middleware(handler)
        return handler

    async def start(self, shutdown: asyncio.Event) -> None:
        """Serve until *shutdown* is set, then stop gracefully.

        Raises:
            ServerStartError: if the server cannot listen on the configured
                address.
            ServerShutdownError: if in-flight requests do not finish within
                ``settings.shutdown_timeout`` seconds.
        """
        settings = self.settings
        server = _ManagedServer(
            uvicorn.Config(
                self.asgi_app,
                host=settings.host,
                port=settings.port,
                timeout_keep_alive=settings.timeout_keep_alive,
                log_level=settings.log_level,
                log_config=None,
            )
        )

        logger.info("WebServer starting on %s:%d", settings.host, settings.port)
        serve_task = asyncio.create_task(self._serve(server))
        shutdown_task = asyncio.create_task(shutdown.wait())
        try:
            done, _ = await asyncio.wait(
                {serve_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            shutdown_task.cancel()

        if serve_task in done:
            serve_task.result()
            logger.info("WebServer stopped")
            return

        logger.info("Shutdown requested, waiting up to %ss for open requests", settings.shutdown_timeout)
        server.should_exit = True
        try:
            await asyncio.wait_for(serve_task, timeout=settings.shutdown_timeout)
        except asyncio.TimeoutError as exc:
            server.force_exit = True
            raise ServerShutdownError(
                f"server shutdown failed: still running after {settings.shutdown_timeout}s"
            ) from exc
        except Exception as exc:
            raise ServerShutdownError(f"server shutdown failed: {exc}") from exc
        logger.info("WebServer gracefully stopped")

    async def _serve(self, server: uvicorn.Server) -> None:
        try:
            await server.serve()
        except (OSError, SystemExit) as exc:
            # uvicorn logs bind failures and exits instead of raising.
            raise ServerStartError(
                f"failed to listen on {self.settings.host}:{self.settings.port}"
            ) from exc


async def _call_provider(content_provider: ContentProvider, request: Request) -> PageContent:
    if inspect.iscoroutinefunction(content_provider) or inspect.iscoroutinefunction(
        getattr(content_provider, "__call__", None)
    ):
        return await content_provider(request)
    # Plain providers may block (database, templates, ...); keep them off the event loop.
    result = await run_in_threadpool(content_provider, request)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _unhandled_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return PlainTextResponse("Internal Server Error", status_code=500)


def _normalize_prefix(url_path: str) -> str:
    """Return *url_path* with a leading slash and no trailing slash ("/" becomes "")."""
    if not url_path.startswith("/"):
        url_path = "/" + url_path
    return url_path.rstrip("/")
