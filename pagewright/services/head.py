"""Builder for :class:`~pagewright.models.head.HeadViewModel`.

Usage::

    head = new_head_view_model(
        with_name("My Site"),
        with_page_core_metadata("Home", "Welcome!", "https://example.com/"),
        with_open_graph(og_image="https://example.com/cover.png"),
        with_stylesheet("/static/style.css"),
    )

Options run in the order given.  Once they have all run, empty OpenGraph and
Twitter fields are filled in from the core page metadata (see
:func:`_resolve_fallbacks`).  Options documented as *non-empty only* leave the
current value untouched when passed an empty string, so they can be used to
override a single field.
"""

from typing import Iterable

from pagewright.models.head import (
    FontLink,
    HeadViewModel,
    HeadViewModelDraft,
    ScriptLink,
    StylesheetLink,
)
from pagewright.models.jsonld import JSONLDNode
from pagewright.services import jsonld
from pagewright.services.options import Option, new_view_model

HeadOption = Option[HeadViewModelDraft]

DEFAULT_VIEWPORT = "width=device-width, initial-scale=1.0"
DEFAULT_MS_START_URL = "/"
DEFAULT_OG_TYPE = "website"
DEFAULT_OG_LOCALE = "en_US"
DEFAULT_TWITTER_CARD_TYPE = "summary_large_image"
DEFAULT_HTMX_PATH = "/static/js/htmx.min.js"
DEFAULT_HTMX_PRELOAD_PATH = "https://unpkg.com/htmx-ext-preload@2.0.1/preload.js"
DEFAULT_ALPINEJS_PATH = "https://cdn.jsdelivr.net/npm/alpinejs@3.x.x/dist/cdn.min.js"


def new_head_view_model(*options: HeadOption) -> HeadViewModel:
    """Build a fully resolved, immutable :class:`HeadViewModel`.

    For a meaningful ``<head>`` callers should at least pass
    :func:`with_page_core_metadata` and, if an ``application-name`` is wanted,
    :func:`with_name`.
    """
    draft = new_view_model(_default_draft, *options)
    _resolve_fallbacks(draft)
    return HeadViewModel.model_validate(draft.model_dump())


def _default_draft() -> HeadViewModelDraft:
    draft = HeadViewModelDraft(
        ms_start_url=DEFAULT_MS_START_URL,
        og_type=DEFAULT_OG_TYPE,
        og_locale=DEFAULT_OG_LOCALE,
        twitter_card_type=DEFAULT_TWITTER_CARD_TYPE,
        htmx_path=DEFAULT_HTMX_PATH,
        htmx_preload_path=DEFAULT_HTMX_PRELOAD_PATH,
        alpinejs_path=DEFAULT_ALPINEJS_PATH,
    )
    draft.metadata.viewport = DEFAULT_VIEWPORT
    return draft


def _resolve_fallbacks(vm: HeadViewModelDraft) -> None:
    """Fill empty social-sharing fields from the metadata they derive from.

    Runs exactly once, after every option, so an explicitly set value always
    wins regardless of option order.
    """
    md = vm.metadata
    if not md.og_url:
        md.og_url = md.url
    if not md.og_title:
        md.og_title = md.title
    if not md.og_description:
        md.og_description = md.description
    if not md.twitter_image:
        md.twitter_image = md.og_image
    if not md.twitter_image_alt:
        if md.og_image_alt:
            md.twitter_image_alt = md.og_image_alt
        elif md.twitter_title:
            md.twitter_image_alt = "Image for " + md.twitter_title


# ---------------------------------------------------------------------------
# Page metadata
# ---------------------------------------------------------------------------

def with_name(name: str) -> HeadOption:
    """Set the application name (``application-name``, ``og:site_name``)."""
    def option(vm: HeadViewModelDraft) -> None:
        vm.name = name
    return option


def with_page_core_metadata(title: str, description: str, canonical_url: str) -> HeadOption:
    """Set the essential page metadata: title, description and canonical URL."""
    def option(vm: HeadViewModelDraft) -> None:
        vm.metadata.title = title
        vm.metadata.description = description
        vm.metadata.url = canonical_url
    return option


def with_author(author: str) -> HeadOption:
    def option(vm: HeadViewModelDraft) -> None:
        vm.metadata.author = author
    return option


def with_keywords(keywords: Iterable[str]) -> HeadOption:
    """Replace the SEO keywords."""
    keywords = list(keywords)

    def option(vm: HeadViewModelDraft) -> None:
        vm.metadata.keywords = list(keywords)
    return option


def with_viewport(viewport: str) -> HeadOption:
    """Override the default viewport (non-empty only)."""
    def option(vm: HeadViewModelDraft) -> None:
        if viewport:
            vm.metadata.viewport = viewport
    return option


def with_schema_image_url(url: str) -> HeadOption:
    """Set the image used for schema.org ``itemprop="image"``."""
    def option(vm: HeadViewModelDraft) -> None:
        vm.metadata.schema_image_url = url
    return option


# ---------------------------------------------------------------------------
# Icons and platform integration
# ---------------------------------------------------------------------------

def with_favicon(path: str, favicon_type: str) -> HeadOption:
    def option(vm: HeadViewModelDraft) -> None:
        vm.favicon_path = path
        vm.favicon_type = favicon_type
    return option


def with_apple_touch_icon(path: str) -> HeadOption:
    def option(vm: HeadViewModelDraft) -> None:
        vm.apple_touch_icon_path = path
    return option


def with_microsoft_options(
    tile_color: str = "",
    browser_config_path: str = "",
    start_url: str = "",
) -> HeadOption:
    """Configure Windows pinned-site tags (non-empty only)."""
    def option(vm: HeadViewModelDraft) -> None:
        if tile_color:
            vm.ms_tile_color = tile_color
        if browser_config_path:
            vm.ms_browser_config_path = browser_config_path
        if start_url:
            vm.ms_start_url = start_url
    return option


# ---------------------------------------------------------------------------
# Social sharing
# ---------------------------------------------------------------------------

def with_open_graph(
    og_type: str = "",
    og_locale: str = "",
    og_url: str = "",
    og_title: str = "",
    og_description: str = "",
    og_image: str = "",
    image_width: str = "",
    image_height: str = "",
    image_alt: str = "",
) -> HeadOption:
    """Configure OpenGraph tags (non-empty only).

    URL, title and description left empty fall back to the core page
    metadata once all options have run.
    """
    def option(vm: HeadViewModelDraft) -> None:
        md = vm.metadata
        if og_type:
            vm.og_type = og_type
        if og_locale:
            vm.og_locale = og_locale
        if og_url:
            md.og_url = og_url
        if og_title:
            md.og_title = og_title
        if og_description:
            md.og_description = og_description
        if og_image:
            md.og_image = og_image
        if image_width:
            md.og_image_width = image_width
        if image_height:
            md.og_image_height = image_height
        if image_alt:
            md.og_image_alt = image_alt
    return option


def with_twitter_card(
    card_type: str = "",
    site_handle: str = "",
    creator_handle: str = "",
    title: str = "",
    description: str = "",
    image: str = "",
    image_alt: str = "",
) -> HeadOption:
    """Configure Twitter card tags (non-empty only)."""
    def option(vm: HeadViewModelDraft) -> None:
        md = vm.metadata
        if card_type:
            vm.twitter_card_type = card_type
        if site_handle:
            vm.twitter_site_handle = site_handle
        if creator_handle:
            vm.twitter_creator_handle = creator_handle
        if title:
            md.twitter_title = title
        if description:
            md.twitter_description = description
        if image:
            md.twitter_image = image
        if image_alt:
            md.twitter_image_alt = image_alt
    return option


def with_theming(theme_color: str = "", apple_status_bar_color: str = "", color_scheme: str = "") -> HeadOption:
    """Set theme-color, the iOS status bar style and color-scheme (non-empty only)."""
    def option(vm: HeadViewModelDraft) -> None:
        if theme_color:
            vm.theme_color = theme_color
        if apple_status_bar_color:
            vm.apple_status_bar_color = apple_status_bar_color
        if color_scheme:
            vm.color_scheme = color_scheme
    return option


# ---------------------------------------------------------------------------
# Analytics and structured data
# ---------------------------------------------------------------------------

def with_analytics(enabled: bool, measurement_id: str) -> HeadOption:
    def option(vm: HeadViewModelDraft) -> None:
        vm.is_analytics_enabled = enabled
        vm.measurement_id = measurement_id
    return option


def with_prepared_jsonld(jsonld_text: str) -> HeadOption:
    """Embed an already serialized JSON-LD document verbatim."""
    def option(vm: HeadViewModelDraft) -> None:
        vm.prepared_jsonld = jsonld_text
    return option


def with_jsonld(node: JSONLDNode) -> HeadOption:
    """Serialize *node* and embed it as the page's JSON-LD document.

    The node is encoded when the option is created, so later changes to it do
    not leak into the head.
    """
    serialized = jsonld.dumps(node, ensure_ascii=False)

    def option(vm: HeadViewModelDraft) -> None:
        vm.prepared_jsonld = serialized
    return option


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------

def with_font(href: str, crossorigin: bool = False) -> HeadOption:
    """Append a font link."""
    def option(vm: HeadViewModelDraft) -> None:
        vm.fonts.append(FontLink(href=href, crossorigin=crossorigin))
    return option


def with_stylesheet(href: str, media: str = "", integrity: str = "", crossorigin: str = "") -> HeadOption:
    """Append a stylesheet link."""
    def option(vm: HeadViewModelDraft) -> None:
        vm.stylesheets.append(
            StylesheetLink(href=href, media=media, integrity=integrity, crossorigin=crossorigin)
        )
    return option


def with_header_script(
    src: str,
    is_async: bool = False,
    is_defer: bool = False,
    script_type: str = "",
    integrity: str = "",
    crossorigin: str = "",
) -> HeadOption:
    """Append a ``<script>`` to the head."""
    def option(vm: HeadViewModelDraft) -> None:
        vm.header_scripts.append(
            ScriptLink(
                src=src,
                is_async=is_async,
                is_defer=is_defer,
                type=script_type,
                integrity=integrity,
                crossorigin=crossorigin,
            )
        )
    return option


def with_common_lib_inclusion(include_htmx: bool, include_htmx_preload: bool, include_alpinejs: bool) -> HeadOption:
    """Choose which of the bundled JS libraries are linked."""
    def option(vm: HeadViewModelDraft) -> None:
        vm.include_htmx = include_htmx
        vm.include_htmx_preload = include_htmx_preload
        vm.include_alpinejs = include_alpinejs
    return option


def with_common_lib_paths(htmx_path: str = "", htmx_preload_path: str = "", alpinejs_path: str = "") -> HeadOption:
    """Override where the bundled JS libraries are loaded from (non-empty only).

    Independent of :func:`with_common_lib_inclusion`: paths may be set for
    libraries that are not included.
    """
    def option(vm: HeadViewModelDraft) -> None:
        if htmx_path:
            vm.htmx_path = htmx_path
        if htmx_preload_path:
            vm.htmx_preload_path = htmx_preload_path
        if alpinejs_path:
            vm.alpinejs_path = alpinejs_path
    return option


def with_htmx(path: str = "") -> HeadOption:
    """Include HTMX, loaded from *path* when given or the default path otherwise."""
    def option(vm: HeadViewModelDraft) -> None:
        vm.include_htmx = True
        if path:
            vm.htmx_path = path
    return option


def with_custom_meta_tag(name: str, content: str) -> HeadOption:
    """Add ``<meta name=... content=...>``; a repeated *name* replaces the earlier value."""
    def option(vm: HeadViewModelDraft) -> None:
        vm.custom_meta_tags[name] = content
    return option
