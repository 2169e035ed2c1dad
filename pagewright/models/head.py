from types import MappingProxyType
from typing import Annotated, Dict, List, Mapping, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer

# Read-only once validated; dumps back to a plain dict.
FrozenStrMap = Annotated[
    Mapping[str, str],
    AfterValidator(MappingProxyType),
    PlainSerializer(dict, return_type=Dict[str, str]),
]


class FontLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    href: str
    crossorigin: bool = False


class StylesheetLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    href: str
    media: str = ""
    integrity: str = ""
    crossorigin: str = ""  # "anonymous" or "use-credentials"


class ScriptLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    src: str
    is_async: bool = False
    is_defer: bool = False
    type: str = ""  # e.g. "module"
    integrity: str = ""
    crossorigin: str = ""


class PageMetadata(BaseModel):
    """SEO and social-sharing metadata for a single page."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    url: str = ""  # canonical URL
    author: str = ""
    keywords: Tuple[str, ...] = ()
    schema_image_url: str = ""
    viewport: str = ""

    # Filled from title / description / url when left empty
    og_url: str = ""
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""
    og_image_width: str = ""
    og_image_height: str = ""
    og_image_alt: str = ""

    # Filled from the OpenGraph image when left empty
    twitter_title: str = ""
    twitter_description: str = ""
    twitter_image: str = ""
    twitter_image_alt: str = ""


class HeadViewModel(BaseModel):
    """Everything the ``<head>`` template needs to render one page.

    Build instances with :func:`pagewright.services.head.new_head_view_model`
    so defaults and social-metadata fallbacks are applied.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    metadata: PageMetadata = Field(default_factory=PageMetadata)

    favicon_path: str = ""
    favicon_type: str = ""
    apple_touch_icon_path: str = ""

    ms_tile_color: str = ""
    ms_browser_config_path: str = ""
    ms_start_url: str = ""

    og_type: str = ""
    og_locale: str = ""

    twitter_card_type: str = ""
    twitter_site_handle: str = ""
    twitter_creator_handle: str = ""

    theme_color: str = ""
    apple_status_bar_color: str = ""
    color_scheme: str = ""

    include_htmx: bool = False
    htmx_path: str = ""
    include_htmx_preload: bool = False
    htmx_preload_path: str = ""
    include_alpinejs: bool = False
    alpinejs_path: str = ""

    fonts: Tuple[FontLink, ...] = ()
    stylesheets: Tuple[StylesheetLink, ...] = ()
    header_scripts: Tuple[ScriptLink, ...] = ()

    is_analytics_enabled: bool = False
    measurement_id: str = ""

    prepared_jsonld: str = ""
    """Serialized JSON-LD document embedded verbatim in the page head."""

    custom_meta_tags: FrozenStrMap = Field(default_factory=dict, validate_default=True)


class PageMetadataDraft(PageMetadata):
    model_config = ConfigDict(frozen=False)

    keywords: List[str] = Field(default_factory=list)


class HeadViewModelDraft(HeadViewModel):
    """Mutable counterpart of :class:`HeadViewModel` that options write into."""

    model_config = ConfigDict(frozen=False)

    metadata: PageMetadataDraft = Field(default_factory=PageMetadataDraft)
    fonts: List[FontLink] = Field(default_factory=list)
    stylesheets: List[StylesheetLink] = Field(default_factory=list)
    header_scripts: List[ScriptLink] = Field(default_factory=list)
    custom_meta_tags: Dict[str, str] = Field(default_factory=dict)
