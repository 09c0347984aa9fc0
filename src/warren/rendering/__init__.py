"""Rendering: the engine interface, the default markup renderer, and
the tagged outcomes a page render ends in.
"""

from warren.rendering.engine import Element, MarkupRenderer, RenderEngine, h, provider
from warren.rendering.outcome import NotFoundOutcome, RedirectTo, Rendered, RenderOutcome
from warren.rendering.returns import InlineTemplate, Template

__all__ = [
    "Element",
    "InlineTemplate",
    "MarkupRenderer",
    "NotFoundOutcome",
    "RedirectTo",
    "RenderEngine",
    "RenderOutcome",
    "Rendered",
    "Template",
    "h",
    "provider",
]
