"""Page assembly: layouts, component exports, metadata, document shell."""

from warren.pages.components import resolve_component
from warren.pages.document import render_document
from warren.pages.layouts import collect_layouts
from warren.pages.metadata import (
    load_metadata,
    render_hreflang_links,
    render_meta_tags,
    request_origin,
)

__all__ = [
    "collect_layouts",
    "load_metadata",
    "render_document",
    "render_hreflang_links",
    "render_meta_tags",
    "request_origin",
    "resolve_component",
]
