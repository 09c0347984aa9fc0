"""Project middleware: one ``middleware.py`` at the project root.

The module exports ``middleware`` (or ``default``). It runs once per
request, before routing, and names the arguments it wants::

    from warren import NEXT, Redirect

    def middleware(request, locale):
        if request.effective_path.startswith("/admin") and "session" not in request.cookies:
            return Redirect("/login")
        return NEXT

Results:

- ``None`` or ``NEXT``: continue to routing
- ``Response`` or ``Redirect``: sent as is, routing is skipped
- ``Rewrite(url)``: route *url* instead of the requested path
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from warren._internal.invoke import invoke, resolve_kwargs
from warren.build.cache import CompilationCache
from warren.context import RequestContext
from warren.http.request import Request
from warren.http.response import NEXT, Redirect, Response, Rewrite

logger = logging.getLogger("warren.server")

MIDDLEWARE_STEM = "middleware"
MIDDLEWARE_EXPORTS = ("middleware", "default")


@dataclass(frozen=True, slots=True)
class Continue:
    """Proceed to routing."""


@dataclass(frozen=True, slots=True)
class Terminal:
    """Send *response*; routing is skipped."""

    response: Response


@dataclass(frozen=True, slots=True)
class RewriteTo:
    """Route *path* instead of the requested path."""

    path: str


MiddlewareOutcome = Continue | Terminal | RewriteTo


def find_middleware(root: Path, extensions: tuple[str, ...]) -> Path | None:
    for ext in extensions:
        candidate = root / f"{MIDDLEWARE_STEM}{ext}"
        if candidate.is_file():
            return candidate
    return None


def middleware_export(module: Any) -> Callable[..., Any] | None:
    for name in MIDDLEWARE_EXPORTS:
        candidate = getattr(module, name, None)
        if callable(candidate):
            return candidate
    return None


def interpret(result: object) -> MiddlewareOutcome:
    """Map a middleware return value to what the dispatcher does next."""
    match result:
        case None:
            return Continue()
        case _ if result is NEXT:
            return Continue()
        case Response():
            return Terminal(result)
        case Redirect():
            return Terminal(result.to_response())
        case Rewrite(url=url):
            return RewriteTo(url.split("?", 1)[0] or "/")
    logger.debug("Middleware returned %s; continuing", type(result).__name__)
    return Continue()


async def run_middleware(
    file: Path,
    cache: CompilationCache,
    request: Request,
    ctx: RequestContext,
) -> MiddlewareOutcome:
    """Load the middleware module through *cache* and run it once.

    Compile failures and exceptions from the middleware propagate.
    """
    module = await cache.load(file)
    func = middleware_export(module)
    if func is None:
        logger.debug("%s exports no middleware; skipping", file)
        return Continue()

    available = {
        "request": request,
        "req": request,
        "ctx": ctx,
        "locale": ctx.locale,
        "pathname": request.effective_path,
    }
    result = await invoke(func, **resolve_kwargs(func, available, by_type={Request: request}))
    return interpret(result)
