"""Request-scoped context.

Every request gets exactly one :class:`RequestContext`. The dispatcher
creates it, passes it explicitly to components and handlers that ask
for ``ctx``, and binds it to a ``ContextVar`` for the request's dynamic
extent so deeply nested helpers can reach it with
:func:`get_request_context`.

Thread safety:
    ``ContextVar`` is task-local under asyncio; every ASGI request runs
    in its own task, so concurrent requests never observe each other's
    context.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from warren.http.cookies import CookieJar

if TYPE_CHECKING:
    from warren.i18n.dictionaries import Translator

Dictionaries = Mapping[str, Mapping[str, str]]


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Per-request state: locale, dictionaries, params, pathname, cookies.

    Attributes:
        locale: Active locale, e.g. ``"en-US"``.
        pathname: Locale-stripped path used for routing.
        params: Path parameters bound by the matched route.
        dictionaries: ``locale -> key -> string``, shared read-only.
        cookies: This request's cookie jar.
        default_locale: Locale used when a key is missing.
    """

    locale: str
    pathname: str
    params: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    dictionaries: Dictionaries = field(default_factory=lambda: MappingProxyType({}))
    cookies: CookieJar = field(default_factory=CookieJar)
    default_locale: str = "en-US"

    def with_params(self, params: Mapping[str, str]) -> RequestContext:
        return replace(self, params=MappingProxyType(dict(params)))

    def with_pathname(self, pathname: str) -> RequestContext:
        return replace(self, pathname=pathname)

    @property
    def translator(self) -> Translator:
        from warren.i18n.dictionaries import Translator

        return Translator(self.locale, self.dictionaries, default_locale=self.default_locale)

    def t(self, key: str, **params: object) -> str:
        """Translate *key* for this request's locale."""
        return self.translator.t(key, **params)


request_context_var: ContextVar[RequestContext] = ContextVar("warren_request_context")
"""The current request context. Set by the dispatcher before routing."""


def get_request_context() -> RequestContext:
    """Return the current request context.

    Raises ``LookupError`` if called outside a request.
    """
    return request_context_var.get()


def get_locale() -> str:
    return request_context_var.get().locale


def get_params() -> Mapping[str, str]:
    return request_context_var.get().params


def get_pathname() -> str:
    return request_context_var.get().pathname


@contextmanager
def bind_context(ctx: RequestContext) -> Iterator[RequestContext]:
    """Bind *ctx* as the current request context for the ``with`` body."""
    token = request_context_var.set(ctx)
    try:
        yield ctx
    finally:
        request_context_var.reset(token)
