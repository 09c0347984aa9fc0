"""Page metadata and ``<head>`` tags.

A page module describes its head in one of two ways::

    metadata = {"title": "About", "description": "Who we are"}

    async def get_metadata(params, locale, t):
        post = await load_post(params["slug"])
        return {"title": t("blog.title", name=post.title)}

Recognised keys: ``title``, ``description``, ``keywords``,
``canonical``, ``robots``, ``lang``, ``open_graph`` (``title``,
``description``, ``url``, ``image``, ``type``) and ``twitter``
(``card``, ``site``, ``creator``).
"""

import html
import logging
from collections.abc import Collection, Mapping
from types import ModuleType
from typing import Any

from warren._internal.invoke import invoke, resolve_kwargs
from warren.http.headers import Headers
from warren.i18n.dictionaries import Translator

logger = logging.getLogger("warren.server")

Metadata = Mapping[str, Any]

_OPEN_GRAPH_FIELDS = ("title", "description", "url", "image")
_TWITTER_FIELDS = ("card", "site", "creator")


def escape_attr(value: object) -> str:
    """Escape text for element content and double- or single-quoted attributes."""
    return html.escape(str(value), quote=True)


async def load_metadata(
    module: ModuleType,
    *,
    params: Mapping[str, str],
    locale: str,
    translator: Translator,
) -> Metadata | None:
    """The metadata *module* declares, or ``None``.

    A failing ``get_metadata`` is logged and treated as no metadata; it
    never fails the page.
    """
    static = getattr(module, "metadata", None)
    if isinstance(static, Mapping):
        return static

    getter = getattr(module, "get_metadata", None)
    if not callable(getter):
        return None

    available = {"params": params, "locale": locale, "t": translator.t}
    try:
        result = await invoke(getter, **resolve_kwargs(getter, available))
    except Exception:
        logger.warning("get_metadata failed in %s", getattr(module, "__file__", module), exc_info=True)
        return None
    return result if isinstance(result, Mapping) else None


def metadata_title(meta: Metadata | None) -> str | None:
    if not meta:
        return None
    title = meta.get("title")
    return str(title) if title else None


def render_meta_tags(meta: Metadata | None) -> str:
    """Render *meta* as ``<head>`` tags, one per line. Every value is escaped."""
    if not meta:
        return ""

    parts: list[str] = []
    if title := meta.get("title"):
        parts.append(f"<title>{escape_attr(title)}</title>")
        parts.append(f'<meta name="title" content="{escape_attr(title)}" />')
    for name in ("description", "keywords"):
        if value := meta.get(name):
            parts.append(f'<meta name="{name}" content="{escape_attr(value)}" />')
    if canonical := meta.get("canonical"):
        parts.append(f'<link rel="canonical" href="{escape_attr(canonical)}" />')
    if robots := meta.get("robots"):
        parts.append(f'<meta name="robots" content="{escape_attr(robots)}" />')

    og = meta.get("open_graph")
    if isinstance(og, Mapping):
        for field in _OPEN_GRAPH_FIELDS:
            if value := og.get(field):
                parts.append(f'<meta property="og:{field}" content="{escape_attr(value)}" />')
        og_type = og.get("type") or "website"
        parts.append(f'<meta property="og:type" content="{escape_attr(og_type)}" />')

    twitter = meta.get("twitter")
    if isinstance(twitter, Mapping):
        for field in _TWITTER_FIELDS:
            if value := twitter.get(field):
                parts.append(f'<meta name="twitter:{field}" content="{escape_attr(value)}" />')

    return "\n".join(parts)


def request_origin(headers: Headers) -> str:
    """``scheme://host`` as the client sees it."""
    host = headers.get("host") or "localhost"
    proto = headers.get("x-forwarded-proto") or "http"
    return f"{proto.split(',', 1)[0].strip()}://{host}"


def render_hreflang_links(
    *,
    origin: str,
    pathname: str,
    locales: Collection[str],
    default_locale: str,
) -> str:
    """Alternate links for every locale, plus ``x-default``.

    *pathname* is the locale-stripped path. The default locale is served
    unprefixed; every other locale under ``/<locale>``.
    """
    if not locales:
        return ""
    tail = "" if pathname in ("", "/") else pathname
    links: list[str] = []
    for lang in locales:
        prefix = "" if lang == default_locale else f"/{lang}"
        href = f"{origin}{prefix}{tail}"
        links.append(
            f'<link rel="alternate" hreflang="{escape_attr(lang)}" href="{escape_attr(href)}" />'
        )
    links.append(
        f'<link rel="alternate" hreflang="x-default" href="{escape_attr(origin + tail)}" />'
    )
    return "\n".join(links)
