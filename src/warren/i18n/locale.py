"""Locale resolution and locale-prefixed paths.

A locale comes from, in priority order:

1. The first path segment, when it looks like a locale (``/fr/about``).
   The stripped path (``/about``) is what routing then sees.
2. The locale cookie (``WARREN_LANG`` by default).
3. The first tag of ``Accept-Language``.
4. The configured default.

A token looks like a locale when it matches ``xx`` or ``xx-YY``. When a
project configures an explicit locale list, only tokens in that list
count; that keeps ``/go/...`` from being read as a language.
"""

import re
from collections.abc import Collection
from dataclasses import dataclass
from enum import Enum

LOCALE_PATTERN = re.compile(r"^[a-zA-Z]{2}(?:-[a-zA-Z]{2})?$")
_LOCALE_PREFIX = re.compile(r"^[a-zA-Z]{2}(?:-[a-zA-Z]{2})?")


class LocaleSource(Enum):
    PATH = "path"
    COOKIE = "cookie"
    HEADER = "header"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class LocaleMatch:
    """The resolved locale, the path routing should use, and where it came from."""

    locale: str
    pathname: str
    source: LocaleSource


def is_locale(token: str, locales: Collection[str] = ()) -> bool:
    """Whether *token* is a locale (and a supported one, if *locales* is given)."""
    if not LOCALE_PATTERN.match(token):
        return False
    if not locales:
        return True
    wanted = token.lower()
    return any(wanted == locale.lower() for locale in locales)


def _clean(path: str) -> str:
    return path.split("?", 1)[0].split("#", 1)[0]


def strip_locale_from_path(path: str, locales: Collection[str] = ()) -> str:
    """Remove leading locale segments from *path*.

    Every leading locale segment is removed, so the function is
    idempotent: ``strip(strip(p)) == strip(p)``. Query strings and
    fragments are dropped; the result always starts with ``/``.

    >>> strip_locale_from_path("/en-US/blog/post?x=1")
    '/blog/post'
    """
    segments = [s for s in _clean(path).split("/") if s]
    while segments and is_locale(segments[0], locales):
        segments.pop(0)
    return "/" + "/".join(segments)


def add_locale_prefix(path: str, locale: str) -> str:
    """Prefix *path* with ``/<locale>``.

    Inverse of :func:`strip_locale_from_path` for a path that carried
    exactly one locale prefix.
    """
    rest = path if path.startswith("/") else f"/{path}"
    if rest == "/":
        return f"/{locale}"
    return f"/{locale}{rest}"


def locale_from_accept_language(header: str, locales: Collection[str] = ()) -> str | None:
    """The locale named by the first tag of an ``Accept-Language`` header."""
    first = header.split(",", 1)[0].split(";", 1)[0].strip()
    match = _LOCALE_PREFIX.match(first)
    if match is None:
        return None
    candidate = match.group(0)
    if not is_locale(candidate, locales):
        return None
    return candidate


def resolve_locale(
    pathname: str,
    cookie_value: str | None = None,
    accept_language: str | None = None,
    *,
    default: str = "en-US",
    locales: Collection[str] = (),
) -> LocaleMatch:
    """Resolve the request locale and the locale-stripped routing path."""
    segments = [s for s in _clean(pathname).split("/") if s]
    stripped = strip_locale_from_path(pathname, locales)

    if segments and is_locale(segments[0], locales):
        return LocaleMatch(segments[0], stripped, LocaleSource.PATH)
    if cookie_value and is_locale(cookie_value, locales):
        return LocaleMatch(cookie_value, stripped, LocaleSource.COOKIE)
    if accept_language:
        from_header = locale_from_accept_language(accept_language, locales)
        if from_header is not None:
            return LocaleMatch(from_header, stripped, LocaleSource.HEADER)
    return LocaleMatch(default, stripped, LocaleSource.DEFAULT)
