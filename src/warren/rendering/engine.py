"""Rendering engine interface and the default markup renderer.

The dispatcher talks to any object satisfying :class:`RenderEngine`::

    engine.render(component, props) -> str | Awaitable[str]

:class:`MarkupRenderer` is the built-in engine. It renders a tree of
:class:`Element` values: a component is a plain (sync or async)
function that receives the props it names and returns markup. The
``children`` prop arrives already rendered, as :class:`Markup`.

Components may return:

- ``str`` (trusted markup) or ``Markup``
- another :class:`Element`
- ``Template`` / ``InlineTemplate`` (rendered with kida)
- a list or tuple of any of these (concatenated)
- ``None`` (renders nothing)

A component decorated with :func:`provider` is a context provider: it
wraps the rendering of its children rather than producing markup.
"""

from __future__ import annotations

import html
from collections.abc import Awaitable, Callable, Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from kida import Environment
from kida.utils.html import Markup

from warren._internal.invoke import invoke, resolve_kwargs
from warren.rendering.returns import InlineTemplate, Template
from warren.rendering.templating import render_template


@dataclass(frozen=True, slots=True)
class Element:
    """A component paired with its props. ``children`` lives in props."""

    component: Callable[..., Any]
    props: Mapping[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return getattr(self.component, "__qualname__", repr(self.component))


def h(component: Callable[..., Any], /, **props: Any) -> Element:
    """Build an :class:`Element`: ``h(Card, title="Hi", children=...)``."""
    return Element(component, props)


@runtime_checkable
class RenderEngine(Protocol):
    """Turns a component and its props into markup, possibly asynchronously."""

    def render(self, component: Callable[..., Any], props: Mapping[str, Any]) -> str | Awaitable[str]: ...


_PROVIDER_ATTR = "__warren_provider__"


def provider(
    func: Callable[..., Iterator[None]],
) -> Callable[..., AbstractContextManager[None]]:
    """Mark a generator function as a context provider component.

    The generator runs up to its ``yield`` before the provider's
    children render, and resumes after::

        @provider
        def ThemeProvider(theme):
            token = theme_var.set(theme)
            try:
                yield
            finally:
                theme_var.reset(token)
    """
    manager = contextmanager(func)
    setattr(manager, _PROVIDER_ATTR, True)
    return manager


def is_provider(component: object) -> bool:
    return bool(getattr(component, _PROVIDER_ATTR, False))


class MarkupRenderer:
    """The default engine: renders Element trees to HTML strings.

    Args:
        kida_env: Environment used for ``Template`` returns. When ``None``
            a bare environment is created for inline templates.
    """

    __slots__ = ("_env",)

    def __init__(self, kida_env: Environment | None = None) -> None:
        self._env = kida_env if kida_env is not None else Environment()

    async def render(self, component: Callable[..., Any], props: Mapping[str, Any]) -> str:
        return await self._render_element(Element(component, props))

    async def render_value(self, value: Any) -> str:
        """Render any supported component result to markup."""
        match value:
            case None | False:
                return ""
            case Markup():
                return str(value)
            case str():
                return value
            case Element():
                return await self._render_element(value)
            case Template() | InlineTemplate():
                return render_template(self._env, value)
            case list() | tuple():
                parts = [await self.render_value(item) for item in value]
                return "".join(parts)
            case bool() | int() | float():
                return html.escape(str(value))
            case _:
                msg = (
                    f"Cannot render {type(value).__name__!r}. Return str, Markup, "
                    "Element, Template, InlineTemplate, a list of these, or None."
                )
                raise TypeError(msg)

    async def _render_element(self, element: Element) -> str:
        props = dict(element.props)
        children = props.get("children")

        if is_provider(element.component):
            scoped = {k: v for k, v in props.items() if k != "children"}
            with element.component(**resolve_kwargs(element.component, scoped)):
                return await self.render_value(children)

        if children is not None and not isinstance(children, Markup):
            props["children"] = Markup(await self.render_value(children))
        result = await invoke(element.component, **resolve_kwargs(element.component, props))
        return await self.render_value(result)
