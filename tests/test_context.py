"""Tests for warren.context — the per-request context and its ContextVar binding."""

import asyncio

import pytest

from warren.context import (
    RequestContext,
    bind_context,
    get_locale,
    get_params,
    get_pathname,
    get_request_context,
)


class TestRequestContext:
    def test_with_params_is_read_only_copy(self) -> None:
        ctx = RequestContext(locale="en", pathname="/")
        bound = ctx.with_params({"id": "1"})
        assert ctx.params == {}
        assert bound.params == {"id": "1"}
        with pytest.raises(TypeError):
            bound.params["id"] = "2"  # type: ignore[index]

    def test_with_pathname(self) -> None:
        ctx = RequestContext(locale="en", pathname="/a")
        assert ctx.with_pathname("/b").pathname == "/b"

    def test_t(self) -> None:
        ctx = RequestContext(locale="fr", pathname="/", dictionaries={"fr": {"hi": "salut {n}"}})
        assert ctx.t("hi", n=1) == "salut 1"

    def test_cookie_jar_shared_across_copies(self) -> None:
        ctx = RequestContext(locale="en", pathname="/")
        ctx.with_params({"x": "1"}).cookies.set("a", "b")
        assert ctx.cookies.get("a") == "b"


class TestBinding:
    def test_bind_and_reset(self) -> None:
        ctx = RequestContext(locale="de", pathname="/x", params={"a": "1"})
        with bind_context(ctx):
            assert get_request_context() is ctx
            assert get_locale() == "de"
            assert get_pathname() == "/x"
            assert get_params() == {"a": "1"}
        with pytest.raises(LookupError):
            get_request_context()

    def test_nested_binding_restores_outer(self) -> None:
        outer = RequestContext(locale="en", pathname="/")
        inner = outer.with_params({"id": "1"})
        with bind_context(outer):
            with bind_context(inner):
                assert get_request_context() is inner
            assert get_request_context() is outer

    async def test_concurrent_tasks_isolated(self) -> None:
        async def handle(locale: str) -> str:
            with bind_context(RequestContext(locale=locale, pathname="/")):
                await asyncio.sleep(0)
                return get_locale()

        results = await asyncio.gather(*(handle(loc) for loc in ("en", "fr", "de", "es")))
        assert results == ["en", "fr", "de", "es"]
