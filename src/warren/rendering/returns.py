"""Template and InlineTemplate return types.

Frozen dataclasses that page and layout components may return instead
of markup strings. The renderer hands them to kida.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Template:
    """Render a kida template from the project's template directory.

    Usage::

        def page(params):
            return Template("post.html", slug=params["slug"])
    """

    name: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, name: str, /, **context: Any) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "context", context)

    @staticmethod
    def inline(source: str, /, **context: Any) -> InlineTemplate:
        """Create a template from a string.

        Usage::

            return Template.inline("<h1>{{ title }}</h1>", title="Hello")
        """
        return InlineTemplate(source, **context)


@dataclass(frozen=True, slots=True)
class InlineTemplate:
    """A template rendered from a string source.

    Needs no template directory, so it works in projects that never
    configure one.
    """

    source: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, source: str, /, **context: Any) -> None:
        object.__setattr__(self, "source", source)
        object.__setattr__(self, "context", context)
