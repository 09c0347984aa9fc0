"""HTTP response types.

``Response`` is immutable with a chainable ``.with_*()`` API. ``Redirect``
and ``Rewrite`` are intent values that middleware and handlers return;
``NEXT`` is the middleware pass-through sentinel. ``ResponseWriter`` is
the mutable object handed to API handlers that prefer to write the
response themselves.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Final

from warren.http.cookies import SetCookie

JSON_CONTENT_TYPE: Final = "application/json"
TEXT_CONTENT_TYPE: Final = "text/plain; charset=utf-8"
HTML_CONTENT_TYPE: Final = "text/html; charset=utf-8"


def _dump(data: Any) -> str:
    return json_module.dumps(data, default=_json_default)


def _json_default(value: Any) -> Any:
    from dataclasses import asdict, is_dataclass

    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status, headers, and cookies. Each call returns a new ``Response``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = HTML_CONTENT_TYPE
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    # -- Constructors --

    @classmethod
    def json(cls, data: Any, status: int = 200) -> Response:
        """A JSON response."""
        return cls(body=_dump(data), status=status, content_type=JSON_CONTENT_TYPE)

    @classmethod
    def text(cls, text: str, status: int = 200) -> Response:
        """A ``text/plain`` response."""
        return cls(body=text, status=status, content_type=TEXT_CONTENT_TYPE)

    @classmethod
    def empty(cls, status: int = 204) -> Response:
        return cls(body=b"", status=status, content_type="")

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_content_type(self, content_type: str) -> Response:
        return replace(self, content_type=content_type)

    def with_cookies(self, cookies: tuple[SetCookie, ...]) -> Response:
        """Return a new Response with additional Set-Cookie directives."""
        if not cookies:
            return self
        return replace(self, cookies=(*self.cookies, *cookies))

    def with_cookie(self, name: str, value: str, **options: Any) -> Response:
        return self.with_cookies((SetCookie(name=name, value=value, **options),))

    # -- Accessors --

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or ``None``."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def body_text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect. 307 keeps the request method, matching ``redirect()``."""

    url: str
    status: int = 307
    headers: tuple[tuple[str, str], ...] = ()

    def to_response(self) -> Response:
        return Response(
            body=b"",
            status=self.status,
            content_type="",
            headers=(("Location", self.url), *self.headers),
        )


@dataclass(frozen=True, slots=True)
class Rewrite:
    """Serve a different path without telling the client.

    Only meaningful as a middleware result: routing restarts at ``url``.
    """

    url: str


class _Next:
    """Middleware pass-through sentinel."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NEXT"

    def __bool__(self) -> bool:
        return False


NEXT: Final = _Next()
"""Returned by middleware to continue to route matching."""


@dataclass(slots=True)
class ResponseWriter:
    """A response an API handler writes directly.

    Handlers that declare a ``response`` (or ``res``) parameter receive
    one of these. Any call marks the writer as touched; an untouched
    writer means the handler's return value decides the response.

    Usage::

        def POST(request, response):
            response.status(201).json({"ok": True})
    """

    status_code: int = 200
    content_type: str = HTML_CONTENT_TYPE
    headers: list[tuple[str, str]] = field(default_factory=list)
    chunks: list[bytes] = field(default_factory=list)
    touched: bool = False
    ended: bool = False

    def status(self, code: int) -> ResponseWriter:
        self.status_code = code
        self.touched = True
        return self

    def set_header(self, name: str, value: str) -> ResponseWriter:
        if name.lower() == "content-type":
            self.content_type = value
        else:
            self.headers.append((name, value))
        self.touched = True
        return self

    def write(self, data: str | bytes) -> ResponseWriter:
        self.chunks.append(data.encode("utf-8") if isinstance(data, str) else data)
        self.touched = True
        return self

    def send(self, data: str | bytes = b"") -> None:
        """Write *data* and end the response."""
        if data:
            self.write(data)
        self.end()

    def json(self, data: Any) -> None:
        self.content_type = JSON_CONTENT_TYPE
        self.send(_dump(data))

    def redirect(self, url: str, status: int = 307) -> None:
        self.status(status).set_header("Location", url)
        self.end()

    def end(self) -> None:
        self.ended = True
        self.touched = True

    def to_response(self) -> Response:
        body = b"".join(self.chunks)
        content_type = self.content_type if body else ""
        return Response(
            body=body,
            status=self.status_code,
            content_type=content_type,
            headers=tuple(self.headers),
        )
