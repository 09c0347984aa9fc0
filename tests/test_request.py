"""Tests for warren.http.request and warren.http.headers."""

from warren.http.headers import Headers
from warren.http.request import Request


def _receive_from(*chunks: bytes):
    messages = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ]

    async def receive():
        return messages.pop(0)

    return receive


def _scope(**overrides):
    scope = {
        "type": "http",
        "method": "get",
        "path": "/fr/blog",
        "query_string": b"q=1&q=2&empty=",
        "headers": [(b"Host", b"example.com"), (b"cookie", b"a=1; b=2"), (b"x-tag", b"one"), (b"x-tag", b"two")],
        "client": ("10.0.0.1", 1234),
    }
    scope.update(overrides)
    return scope


class TestHeaders:
    def test_case_insensitive(self) -> None:
        headers = Headers([(b"Content-Type", b"text/html")])
        assert headers["content-type"] == "text/html"
        assert "CONTENT-TYPE" in headers
        assert headers.get("missing") is None

    def test_multiple_values(self) -> None:
        headers = Headers([(b"x-tag", b"one"), (b"x-tag", b"two")])
        assert headers["x-tag"] == "one"
        assert headers.get_list("X-Tag") == ["one", "two"]
        assert len(headers) == 1

    def test_from_mapping(self) -> None:
        assert dict(Headers.from_mapping({"Host": "h"})) == {"host": "h"}


class TestFromAsgi:
    def test_metadata(self) -> None:
        request = Request.from_asgi(_scope(), _receive_from(b""))
        assert request.method == "GET"
        assert request.path == "/fr/blog"
        assert request.effective_path == "/fr/blog"
        assert request.cookies == {"a": "1", "b": "2"}
        assert request.client == ("10.0.0.1", 1234)
        assert request.url == "/fr/blog?q=1&q=2&empty="

    def test_query_first_value(self) -> None:
        request = Request.from_asgi(_scope(), _receive_from(b""))
        assert request.query == {"q": "1", "empty": ""}

    def test_with_locale(self) -> None:
        request = Request.from_asgi(_scope(), _receive_from(b""))
        localized = request.with_locale("fr", "/blog")
        assert localized.locale == "fr"
        assert localized.effective_path == "/blog"
        assert localized.path == "/fr/blog"
        assert request.locale == ""

    def test_with_params(self) -> None:
        request = Request.from_asgi(_scope(), _receive_from(b""))
        assert request.with_params({"slug": "x"}).params == {"slug": "x"}


class TestBody:
    async def test_chunks_joined_and_cached(self) -> None:
        request = Request.from_asgi(_scope(method="POST"), _receive_from(b'{"a"', b": 1}"))
        assert await request.body() == b'{"a": 1}'
        assert await request.json() == {"a": 1}

    async def test_cache_shared_with_copies(self) -> None:
        request = Request.from_asgi(_scope(method="POST"), _receive_from(b"hello"))
        assert await request.text() == "hello"
        assert await request.with_locale("fr", "/").text() == "hello"

    async def test_empty_json(self) -> None:
        request = Request.from_asgi(_scope(method="POST"), _receive_from(b""))
        assert await request.json() is None
