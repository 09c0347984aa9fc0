"""Error handling for page requests.

Maps failures to a status code, picks the error-page route to try, and
builds the last-resort response when no error page renders: the
diagnostic overlay in debug, a registered error handler or a generic
body in production.
"""

import logging
from collections.abc import Callable, Mapping
from http import HTTPStatus
from pathlib import Path
from typing import Any

from warren._internal.invoke import invoke, resolve_kwargs
from warren.errors import HTTPError
from warren.http.request import Request
from warren.http.response import HTML_CONTENT_TYPE, Redirect, Response
from warren.server.debug_page import render_debug_page

logger = logging.getLogger("warren.server")

ErrorHandlers = Mapping[int | type, Callable[..., Any]]

_STATUS_ATTRS = ("status_code", "statusCode", "status", "code")


def _status_of(exc: BaseException) -> int | None:
    for attr in _STATUS_ATTRS:
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def classify_status(exc: BaseException) -> int:
    """HTTP status for *exc*: its own, else its cause's, else 500.

    Looks at ``status_code``, then ``status``, then a numeric ``code``.
    Values outside 400-599 are ignored.
    """
    for candidate in (exc, exc.__cause__):
        if candidate is None:
            continue
        status = _status_of(candidate)
        if status is not None and 400 <= status <= 599:
            return status
    return 500


def error_message(exc: BaseException, status: int) -> str:
    if isinstance(exc, HTTPError) and exc.detail:
        return exc.detail
    text = str(exc)
    if text:
        return text
    return "Page not found" if status == 404 else "Server error"


def error_page_candidates(status: int) -> tuple[str, ...]:
    """Route paths to try for an error page, in priority order."""
    paths = [f"/{status}"]
    if status == 404:
        paths += ["/404", "/not-found"]
    if status == 500:
        paths.append("/500")
    paths.append("/error")
    return tuple(dict.fromkeys(paths))


def find_error_handler(handlers: ErrorHandlers, exc: BaseException, status: int) -> Callable[..., Any] | None:
    """Registered handler for the exception's type (or a base), then the status."""
    for cls in type(exc).__mro__:
        if cls in handlers:
            return handlers[cls]
    return handlers.get(status)


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: BaseException,
    status: int,
) -> Response:
    """Invoke a user-registered error handler and coerce its result.

    Handlers name what they want: ``request``, ``exc``/``error``, and
    ``status``. A returned ``str`` is HTML; a mapping is JSON.
    """
    available = {"request": request, "exc": exc, "error": exc, "status": status}
    result = await invoke(handler, **resolve_kwargs(handler, available))

    match result:
        case Response():
            return result if result.status != 200 else result.with_status(status)
        case Redirect():
            return result.to_response()
        case str():
            return Response(body=result, status=status)
        case Mapping():
            return Response.json(dict(result), status=status)
        case None:
            return generic_error_response(status)
    msg = f"Error handler {handler!r} returned unsupported {type(result).__name__}"
    raise TypeError(msg)


def generic_error_response(status: int) -> Response:
    try:
        phrase = HTTPStatus(status).phrase
    except ValueError:
        phrase = "Error"
    return Response(body=f"{status} {phrase}", status=status, content_type=HTML_CONTENT_TYPE)


async def handle_internal_error(
    exc: BaseException,
    request: Request,
    *,
    error_handlers: ErrorHandlers,
    debug: bool,
    file: str | Path | None = None,
    title: str | None = None,
    status: int = 500,
    log: bool = True,
) -> Response:
    """The response for a failure nothing else could render.

    In debug this is the overlay (always 500). In production a
    registered handler decides, else a generic status body is sent.
    """
    if log:
        logger.exception("%d %s %s", status, request.method, request.path, exc_info=exc)

    if debug:
        body = render_debug_page(exc, request, file=file, title=title)
        return Response(body=body, status=500)

    handler = find_error_handler(error_handlers, exc, status)
    if handler is None:
        return generic_error_response(status)
    try:
        return await call_error_handler(handler, request, exc, status)
    except Exception:
        logger.exception("Error handler %r failed for %s %s", handler, request.method, request.path)
        return generic_error_response(status)
