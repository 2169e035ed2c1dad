from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import BaseModel
from starlette.requests import Request

from pagewright.models.head import HeadViewModel


class PageContent(BaseModel):
    """What a content provider returns for one request."""

    metadata: HeadViewModel
    content: str  # body markup, inserted into the layout unescaped


ContentProvider = Callable[[Request], Union[PageContent, Awaitable[PageContent]]]
"""Builds the page for an incoming request; may be a plain or an ``async`` function."""


class WebPage(BaseModel):
    path: str  # e.g. "/about" or "/dashboard/products"
    content_provider: Optional[Callable[..., Any]] = None
