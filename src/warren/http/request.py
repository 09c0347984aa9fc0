"""Immutable HTTP request.

Frozen metadata with async body access. ``path`` is what the client
sent; ``effective_path`` is the path after locale stripping (and after
a middleware rewrite), which is what route matching sees.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any
from urllib.parse import parse_qs

from warren._internal.asgi import Receive
from warren.http.cookies import parse_cookies
from warren.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Body is accessed asynchronously via ``.body()``, ``.json()``, ``.text()``.
    """

    method: str
    path: str
    query_string: str
    headers: Headers
    cookies: Mapping[str, str]
    effective_path: str = ""
    locale: str = ""
    params: Mapping[str, str] = field(default_factory=dict)
    client: tuple[str, int] | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: body cache shared by copies made with ``replace``
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def query(self) -> Mapping[str, str]:
        """Query parameters, first value per key."""
        parsed = parse_qs(self.query_string, keep_blank_values=True)
        return MappingProxyType({k: v[0] for k, v in parsed.items()})

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Request path plus query string, as the client sent it."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    # -- Derived copies --

    def with_effective_path(self, path: str) -> Request:
        """Return a copy routed as *path* (used by locale stripping and rewrites)."""
        return replace(self, effective_path=path)

    def with_locale(self, locale: str, effective_path: str) -> Request:
        return replace(self, locale=locale, effective_path=effective_path)

    def with_params(self, params: Mapping[str, str]) -> Request:
        return replace(self, params=dict(params))

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body. Cached after the first read."""
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON. An empty body parses to ``None``."""
        raw = await self.body()
        if not raw:
            return None
        return json_module.loads(raw)

    async def text(self) -> str:
        raw = await self.body()
        return raw.decode("utf-8")

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(scope.get("headers", ())))
        client = scope.get("client")
        path = scope.get("path") or "/"
        return cls(
            method=scope.get("method", "GET").upper(),
            path=path,
            query_string=scope.get("query_string", b"").decode("latin-1"),
            headers=headers,
            cookies=parse_cookies(headers.get("cookie", "")),
            effective_path=path,
            client=tuple(client) if client else None,
            _receive=receive,
        )
