"""Tests for warren.rendering — the markup renderer, providers, outcomes, and kida returns."""

from contextvars import ContextVar

import pytest
from kida.utils.html import Markup

from warren.config import AppConfig
from warren.errors import ConfigurationError, NotFound
from warren.http.response import Redirect
from warren.navigation import NotFoundSignal, RedirectSignal, not_found, permanent_redirect, redirect
from warren.rendering.engine import Element, MarkupRenderer, RenderEngine, h, provider
from warren.rendering.outcome import NotFoundOutcome, RedirectTo, from_signal, from_value
from warren.rendering.returns import InlineTemplate, Template
from warren.rendering.templating import create_environment

theme_var: ContextVar[str] = ContextVar("theme", default="light")


@provider
def ThemeProvider(theme):  # noqa: N802
    token = theme_var.set(theme)
    try:
        yield
    finally:
        theme_var.reset(token)


def Themed():  # noqa: N802
    return f"<p>{theme_var.get()}</p>"


class TestMarkupRenderer:
    async def test_string_component(self) -> None:
        def Hello(name):  # noqa: N802
            return f"<h1>{name}</h1>"

        assert await MarkupRenderer().render(Hello, {"name": "Ada"}) == "<h1>Ada</h1>"

    async def test_async_component(self) -> None:
        async def Hello():  # noqa: N802
            return "<p>async</p>"

        assert await MarkupRenderer().render(Hello, {}) == "<p>async</p>"

    async def test_children_arrive_rendered(self) -> None:
        seen = []

        def Layout(children):  # noqa: N802
            seen.append(children)
            return f"<main>{children}</main>"

        def Page():  # noqa: N802
            return "<p>page</p>"

        markup = await MarkupRenderer().render(Layout, {"children": h(Page)})
        assert markup == "<main><p>page</p></main>"
        assert isinstance(seen[0], Markup)

    async def test_lists_and_none(self) -> None:
        def List():  # noqa: N802
            return ["<li>a</li>", None, h(lambda: "<li>b</li>")]

        assert await MarkupRenderer().render(List, {}) == "<li>a</li><li>b</li>"

    async def test_numbers_escaped_as_text(self) -> None:
        assert await MarkupRenderer().render_value(42) == "42"

    async def test_unsupported_value(self) -> None:
        with pytest.raises(TypeError, match="Cannot render"):
            await MarkupRenderer().render_value(object())

    async def test_provider_scopes_children(self) -> None:
        markup = await MarkupRenderer().render(ThemeProvider, {"theme": "dark", "children": h(Themed)})
        assert markup == "<p>dark</p>"
        assert theme_var.get() == "light"

    async def test_unused_props_are_not_passed(self) -> None:
        def Bare():  # noqa: N802
            return "ok"

        assert await MarkupRenderer().render(Bare, {"params": {}, "locale": "en"}) == "ok"

    def test_satisfies_protocol(self) -> None:
        assert isinstance(MarkupRenderer(), RenderEngine)

    def test_element_name(self) -> None:
        assert Element(Themed).name == "Themed"


class TestTemplates:
    async def test_inline_template(self) -> None:
        def Page():  # noqa: N802
            return InlineTemplate("<h1>{{ title }}</h1>", title="Hi")

        assert await MarkupRenderer().render(Page, {}) == "<h1>Hi</h1>"

    async def test_inline_template_autoescapes(self) -> None:
        renderer = MarkupRenderer(create_environment(AppConfig()))
        html = await renderer.render_value(Template.inline("{{ x }}", x="<b>"))
        assert html == "&lt;b&gt;"

    async def test_file_template(self, tmp_path) -> None:
        (tmp_path / "templates").mkdir()
        (tmp_path / "templates" / "post.html").write_text("<article>{{ slug }}</article>")
        env = create_environment(AppConfig(root=tmp_path, template_dir="templates"))
        html = await MarkupRenderer(env).render_value(Template("post.html", slug="hello"))
        assert html == "<article>hello</article>"

    async def test_file_template_needs_directory(self) -> None:
        renderer = MarkupRenderer(create_environment(AppConfig()))
        with pytest.raises(ConfigurationError, match="template_dir"):
            await renderer.render_value(Template("post.html"))


class TestNavigation:
    def test_redirect_default_status(self) -> None:
        with pytest.raises(RedirectSignal) as info:
            redirect("/login")
        assert info.value.url == "/login"
        assert info.value.status == 307

    def test_permanent(self) -> None:
        with pytest.raises(RedirectSignal) as info:
            permanent_redirect("/new")
        assert info.value.status == 308

    def test_not_found(self) -> None:
        with pytest.raises(NotFoundSignal):
            not_found()


class TestOutcome:
    def test_from_signal(self) -> None:
        assert from_signal(RedirectSignal("/x", 302)) == RedirectTo("/x", 302)
        assert from_signal(NotFoundSignal("gone")) == NotFoundOutcome("gone")
        assert from_signal(NotFound()) == NotFoundOutcome("Not Found")

    def test_from_signal_rejects_errors(self) -> None:
        with pytest.raises(TypeError):
            from_signal(ValueError("x"))

    def test_from_value(self) -> None:
        assert from_value(Redirect("/home")) == RedirectTo("/home", 307)
        assert from_value("<p>markup</p>") is None
        assert from_value(None) is None
