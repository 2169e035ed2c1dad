from pathlib import Path
from typing import Any, Callable, List, Literal, Optional

from pydantic import BaseModel, Field

from pagewright.services.layout import render_base_layout


class StaticAssetFS(BaseModel):
    url_path: str
    """URL prefix the assets are served under, e.g. ``"/static"``."""

    directory: Optional[Path] = None


class WebServerConfig(BaseModel):
    static_assets: List[StaticAssetFS] = Field(default_factory=list)
    layout: Callable[..., str] = render_base_layout
    """Wraps page content: ``layout(head, content) -> html``."""

    global_middlewares: List[Callable[..., Any]] = Field(default_factory=list)
    """ASGI middleware factories (``app -> app``); the first one is outermost."""

    rate_limit: Optional[str] = Field(
        default=None,
        description="Default rate limit applied to every route, e.g. '120/minute'.",
        examples=["120/minute", "10/second"],
    )


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=0, le=65535)
    timeout_keep_alive: int = Field(default=120, ge=1)
    shutdown_timeout: float = Field(
        default=15.0,
        gt=0,
        description="Seconds to wait for in-flight requests after shutdown is requested.",
    )
    log_level: Literal["critical", "error", "warning", "info", "debug", "trace"] = "info"
