import asyncio
import logging
import logging.config
import signal
from pathlib import Path
from typing import Optional

from fastapi import Request

from pagewright.middlewares.access_log import access_log
from pagewright.middlewares.name import get_visitor_name, visitor_name
from pagewright.models.config import ServerSettings, StaticAssetFS, WebServerConfig
from pagewright.models.jsonld import JSONLDNode
from pagewright.models.page import PageContent, WebPage
from pagewright.server import WebServer
from pagewright.services.head import (
    new_head_view_model,
    with_favicon,
    with_htmx,
    with_jsonld,
    with_keywords,
    with_name,
    with_open_graph,
    with_page_core_metadata,
    with_stylesheet,
)
from pagewright.services.layout import render_fragment

logging.config.dictConfig(
    {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
        },
        "root": {"level": "INFO", "handlers": ["console"]},
    }
)

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def home(request: Request) -> PageContent:
    head = new_head_view_model(
        with_name("pagewright"),
        with_htmx(),
        with_page_core_metadata(
            "pagewright: server-rendered pages with proper SEO metadata",
            "Compose pages, head metadata and session handling on top of FastAPI.",
            "/",
        ),
        with_keywords(["pagewright", "fastapi", "seo", "opengraph", "json-ld"]),
        with_favicon("/static/favicon.svg", "image/svg+xml"),
        with_open_graph(
            og_image="https://placehold.co/1200x630/0779e4/ffffff?text=pagewright",
            image_width="1200",
            image_height="630",
            image_alt="pagewright banner",
        ),
        with_stylesheet("/static/style.css"),
        with_jsonld(
            JSONLDNode(
                context="https://schema.org",
                type="WebSite",
                properties={"name": "pagewright", "url": "/"},
            )
        ),
    )
    content = render_fragment("home.html", name=get_visitor_name(request))
    return PageContent(metadata=head, content=content)


web_server = WebServer(
    WebServerConfig(
        static_assets=[StaticAssetFS(url_path="/static", directory=STATIC_DIR)],
        global_middlewares=[access_log, visitor_name],
    ),
    ServerSettings(host="0.0.0.0", port=8080),
)
web_server.register_pages([WebPage(path="/", content_provider=home)])


def shutdown_on_signals(shutdown: asyncio.Event, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
    """Set *shutdown* when the process receives SIGINT or SIGTERM."""
    loop = loop or asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)


async def run() -> None:
    shutdown = asyncio.Event()
    shutdown_on_signals(shutdown)
    await web_server.start(shutdown)


if __name__ == "__main__":
    asyncio.run(run())
