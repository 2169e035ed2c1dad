"""HTML rendering for the page head and the base layout.

Templates live in ``pagewright/templates`` and are rendered with Jinja2 with
autoescaping enabled.  Page content handed to :func:`render_base_layout` is
trusted markup and inserted as-is.
"""

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from pagewright.models.head import HeadViewModel

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def _script_safe_json(text: str) -> Markup:
    """Make JSON text safe to place inside a ``<script>`` element.

    ``<``, ``>`` and ``&`` are replaced by their JSON unicode escapes, which
    leaves the parsed document unchanged but prevents ``</script>`` from
    closing the element early.
    """
    return Markup(
        text.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")
    )


_env.filters["script_safe_json"] = _script_safe_json


def render_head(head: HeadViewModel) -> str:
    """Render the ``<head>`` element for *head*."""
    return _env.get_template("head.html").render(head=head)


def render_base_layout(head: HeadViewModel, content: str) -> str:
    """Render a complete HTML document with *content* as the body."""
    return _env.get_template("layout.html").render(head=head, content=Markup(content))


def render_fragment(template_name: str, **context: Any) -> str:
    """Render a page fragment template (autoescaped) to a string."""
    return _env.get_template(template_name).render(**context)
