"""Tests for warren.pages — layouts, component exports, metadata, and the document shell."""

import types

from warren.http.headers import Headers
from warren.i18n.dictionaries import Translator
from warren.pages.components import describe_exports, resolve_component
from warren.pages.document import render_document
from warren.pages.layouts import collect_layouts
from warren.pages.metadata import (
    escape_attr,
    load_metadata,
    metadata_title,
    render_hreflang_links,
    render_meta_tags,
    request_origin,
)


def _module(name: str = "user_page", **attrs) -> types.ModuleType:
    module = types.ModuleType(name)
    for key, value in attrs.items():
        if callable(value) and hasattr(value, "__module__"):
            value.__module__ = name
        setattr(module, key, value)
    return module


class TestCollectLayouts:
    def test_outermost_first(self, project) -> None:
        root_layout = project.write("src/app/layout.py", "")
        blog_layout = project.write("src/app/blog/layout.py", "")
        page = project.page("blog/[slug]", "")
        assert collect_layouts(page, project.root) == [root_layout.resolve(), blog_layout.resolve()]

    def test_walks_to_project_root(self, project) -> None:
        top = project.write("layout.py", "")
        page = project.page("about", "")
        assert collect_layouts(page, project.root) == [top.resolve()]

    def test_no_layouts(self, project) -> None:
        page = project.page("about", "")
        assert collect_layouts(page, project.root) == []

    def test_extension_order(self, project) -> None:
        project.write("src/app/layout.py", "")
        preferred = project.write("src/app/layout.pyw", "")
        page = project.page("", "")
        found = collect_layouts(page, project.root, extensions=(".pyw", ".py"))
        assert found == [preferred.resolve()]

    def test_page_outside_root(self, project, tmp_path_factory) -> None:
        elsewhere = tmp_path_factory.mktemp("elsewhere")
        (elsewhere / "layout.py").write_text("")
        page = elsewhere / "page.py"
        page.write_text("")
        assert collect_layouts(page, project.root) == [(elsewhere / "layout.py").resolve()]


class TestResolveComponent:
    def test_default_first(self) -> None:
        def default():
            return "d"

        def page():
            return "p"

        assert resolve_component(_module(default=default, page=page)) is default

    def test_page_export(self) -> None:
        def page():
            return "p"

        assert resolve_component(_module(page=page)) is page

    def test_first_local_function(self) -> None:
        def get_metadata():
            return {}

        def About():  # noqa: N802
            return "about"

        module = _module(get_metadata=get_metadata, About=About)
        assert resolve_component(module) is About

    def test_imported_functions_ignored(self) -> None:
        module = types.ModuleType("user_page")
        module.dumps = __import__("json").dumps
        assert resolve_component(module) is None

    def test_describe_exports(self) -> None:
        module = _module(metadata={}, helper=lambda: None)
        assert describe_exports(module) == "helper, metadata"
        assert describe_exports(types.ModuleType("empty")) == "(none)"


class TestLoadMetadata:
    translator = Translator("fr", {"fr": {"title": "Bonjour {name}"}})

    async def test_static_metadata(self) -> None:
        module = _module(metadata={"title": "About"})
        meta = await load_metadata(module, params={}, locale="en", translator=self.translator)
        assert meta == {"title": "About"}

    async def test_get_metadata_receives_params_locale_and_t(self) -> None:
        async def get_metadata(params, locale, t):
            return {"title": t("title", name=params["slug"]), "lang": locale}

        module = _module(get_metadata=get_metadata)
        meta = await load_metadata(module, params={"slug": "x"}, locale="fr", translator=self.translator)
        assert meta == {"title": "Bonjour x", "lang": "fr"}

    async def test_failure_is_no_metadata(self, caplog) -> None:
        def get_metadata():
            raise RuntimeError("db down")

        module = _module(get_metadata=get_metadata)
        with caplog.at_level("WARNING", logger="warren.server"):
            meta = await load_metadata(module, params={}, locale="en", translator=self.translator)
        assert meta is None
        assert "get_metadata failed" in caplog.text

    async def test_none(self) -> None:
        meta = await load_metadata(_module(), params={}, locale="en", translator=self.translator)
        assert meta is None
        assert metadata_title(meta) is None


class TestMetaTags:
    def test_title_and_description(self) -> None:
        html = render_meta_tags({"title": "About", "description": "Who we are"})
        assert "<title>About</title>" in html
        assert '<meta name="title" content="About" />' in html
        assert '<meta name="description" content="Who we are" />' in html

    def test_values_escaped(self) -> None:
        html = render_meta_tags({"title": '<script>"x"</script>', "description": "it's"})
        assert "<script>" not in html
        assert "&lt;script&gt;&quot;x&quot;" in html
        assert "it&#x27;s" in html

    def test_open_graph_type_defaults(self) -> None:
        html = render_meta_tags({"open_graph": {"title": "OG", "image": "/og.png"}})
        assert '<meta property="og:title" content="OG" />' in html
        assert '<meta property="og:image" content="/og.png" />' in html
        assert '<meta property="og:type" content="website" />' in html

    def test_twitter_and_robots(self) -> None:
        html = render_meta_tags(
            {"robots": "noindex", "canonical": "https://x.test/a", "twitter": {"card": "summary"}}
        )
        assert '<meta name="robots" content="noindex" />' in html
        assert '<link rel="canonical" href="https://x.test/a" />' in html
        assert '<meta name="twitter:card" content="summary" />' in html

    def test_empty(self) -> None:
        assert render_meta_tags(None) == ""
        assert render_meta_tags({}) == ""

    def test_escape_attr(self) -> None:
        assert escape_attr("a&b") == "a&amp;b"
        assert escape_attr("<\"it's\">") == "&lt;&quot;it&#x27;s&quot;&gt;"
        assert escape_attr(3) == "3"


class TestHreflang:
    def test_links_per_locale(self) -> None:
        html = render_hreflang_links(
            origin="https://x.test",
            pathname="/about",
            locales=("en-US", "fr"),
            default_locale="en-US",
        )
        assert '<link rel="alternate" hreflang="en-US" href="https://x.test/about" />' in html
        assert '<link rel="alternate" hreflang="fr" href="https://x.test/fr/about" />' in html
        assert '<link rel="alternate" hreflang="x-default" href="https://x.test/about" />' in html

    def test_root_path(self) -> None:
        html = render_hreflang_links(
            origin="http://h", pathname="/", locales=("fr",), default_locale="en-US"
        )
        assert 'href="http://h/fr"' in html
        assert 'hreflang="x-default" href="http://h"' in html

    def test_no_locales(self) -> None:
        assert render_hreflang_links(origin="o", pathname="/", locales=(), default_locale="en") == ""

    def test_origin(self) -> None:
        headers = Headers.from_mapping({"host": "example.com", "x-forwarded-proto": "https, http"})
        assert request_origin(headers) == "https://example.com"
        assert request_origin(Headers()) == "http://localhost"


class TestRenderDocument:
    def test_fragment_wrapped(self) -> None:
        doc = render_document("<h1>Hi</h1>", head="<title>T</title>", lang="fr")
        assert doc.startswith("<!DOCTYPE html>\n")
        assert '<html lang="fr">' in doc
        assert '<div id="root"><h1>Hi</h1></div>' in doc
        assert "<title>T</title>" in doc
        assert '<meta charset="UTF-8" />' in doc

    def test_full_document_gets_head_injected(self) -> None:
        markup = "<html><head><title>Own</title></head><body>x</body></html>"
        doc = render_document(markup, head='<meta name="description" content="d" />')
        assert doc.startswith("<!DOCTYPE html>\n<html>")
        assert '<meta name="description" content="d" />\n</head>' in doc
        assert 'id="root"' not in doc

    def test_lang_escaped(self) -> None:
        assert '<html lang="&quot;x">' in render_document("", lang='"x')
