"""API route handling.

A route module exports one function per HTTP method, or a ``default``
that handles every method::

    async def GET(request, params):
        return {"id": params["id"]}

    def POST(request, response):
        response.status(201).json({"created": True})

Handlers name the arguments they want: ``request`` (or ``req``),
``params``, ``locale``, ``ctx``, ``context`` (``{"params", "locale",
"lang"}``), any path parameter by name, and ``response``/``res`` (or
any parameter annotated ``ResponseWriter``) for the writer style.
"""

import logging
import traceback
from collections.abc import Callable, Mapping
from http import HTTPStatus
from pathlib import Path
from typing import Any

from warren._internal.invoke import accepts_parameter, invoke, resolve_kwargs
from warren.context import RequestContext
from warren.errors import CompilationError, HTTPError, MethodNotAllowed
from warren.http.request import Request
from warren.http.response import (
    TEXT_CONTENT_TYPE,
    Redirect,
    Response,
    ResponseWriter,
)

logger = logging.getLogger("warren.server")

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD")
WRITER_PARAMS = frozenset({"response", "res"})


def exported_methods(module: Any) -> frozenset[str]:
    return frozenset(m for m in HTTP_METHODS if callable(getattr(module, m, None)))


def select_handler(module: Any, method: str) -> Callable[..., Any]:
    """The handler for *method*: its named export, else ``default``.

    ``HEAD`` falls back to ``GET``; the sender drops the body.

    Raises:
        MethodNotAllowed: The module exports neither.
    """
    names = [method.upper(), "default"]
    if names[0] == "HEAD":
        names.insert(1, "GET")
    for name in names:
        candidate = getattr(module, name, None)
        if callable(candidate):
            return candidate
    raise MethodNotAllowed(exported_methods(module))


def wants_writer(handler: Callable[..., Any]) -> bool:
    return accepts_parameter(handler, WRITER_PARAMS, ResponseWriter)


async def call_handler(
    handler: Callable[..., Any],
    request: Request,
    ctx: RequestContext,
) -> Response:
    """Call *handler* once and turn what it did into a ``Response``."""
    params = dict(ctx.params)
    available: dict[str, Any] = {
        **params,
        "request": request,
        "req": request,
        "params": params,
        "locale": ctx.locale,
        "lang": ctx.locale,
        "ctx": ctx,
        "context": {"params": params, "locale": ctx.locale, "lang": ctx.locale},
    }

    writer: ResponseWriter | None = None
    by_type: dict[type, Any] = {Request: request, RequestContext: ctx}
    if wants_writer(handler):
        writer = ResponseWriter()
        available["response"] = available["res"] = writer
        by_type[ResponseWriter] = writer

    result = await invoke(handler, **resolve_kwargs(handler, available, by_type=by_type))

    if writer is not None and writer.touched:
        return writer.to_response()
    return await interpret_result(result)


def _response_shaped(value: object) -> bool:
    status = getattr(value, "status", None)
    if not isinstance(status, int) or isinstance(status, bool):
        return False
    return any(hasattr(value, attr) for attr in ("headers", "json", "text"))


def _header_items(raw: object) -> tuple[tuple[str, str], ...]:
    match raw:
        case None:
            return ()
        case Mapping():
            return tuple((str(k), str(v)) for k, v in raw.items())
        case list() | tuple():
            return tuple((str(k), str(v)) for k, v in raw)
    items = getattr(raw, "items", None)
    if callable(items):
        return tuple((str(k), str(v)) for k, v in items())
    return ()


async def _adapt(value: Any) -> Response:
    status: int = value.status
    headers = _header_items(getattr(value, "headers", None))
    content_type = next((v for k, v in headers if k.lower() == "content-type"), None)
    headers = tuple((k, v) for k, v in headers if k.lower() != "content-type")

    reader = getattr(value, "json", None)
    if callable(reader):
        data = await invoke(reader)
        return Response.json(data, status=status).with_headers(dict(headers))
    reader = getattr(value, "text", None)
    if callable(reader):
        text = await invoke(reader)
        return Response(
            body=str(text),
            status=status,
            content_type=content_type or TEXT_CONTENT_TYPE,
            headers=headers,
        )
    return Response(body=b"", status=status, content_type=content_type or "", headers=headers)


async def interpret_result(value: Any) -> Response:
    """Turn a handler's return value into a ``Response``.

    ``Response``/``Redirect`` as is; response-shaped objects adapted;
    scalars as ``text/plain``; any other object as JSON; ``None`` as 204.
    """
    match value:
        case Response():
            return value
        case Redirect():
            return value.to_response()
        case None:
            return Response.empty(204)
        case str() | bool() | int() | float():
            return Response.text(str(value))
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
    if _response_shaped(value):
        return await _adapt(value)
    return Response.json(value)


# -- Error bodies --


def api_not_found(path: str) -> Response:
    return Response.json(
        {"error": {"code": 404, "message": "API route not found"}, "path": path},
        status=404,
    )


def method_not_allowed(exc: MethodNotAllowed) -> Response:
    response = Response.json({"error": {"code": 405, "message": "Method not allowed"}}, status=405)
    return response.with_headers(dict(exc.headers))


def http_error(exc: HTTPError) -> Response:
    """JSON body for an ``HTTPError`` raised by a handler, keeping its status."""
    message = exc.detail
    if not message:
        try:
            message = HTTPStatus(exc.status).phrase
        except ValueError:
            message = "Error"
    response = Response.json({"error": {"code": exc.status, "message": message}}, status=exc.status)
    return response.with_headers(dict(exc.headers))


def compile_failed(exc: CompilationError, file: Path) -> Response:
    message = "API compilation failed"
    if exc.resource_exhausted:
        message = "API compilation failed: not enough disk space. Free disk space or delete the cache directory"
    return Response.json({"error": {"code": 500, "message": message}, "file": str(file)}, status=500)


def handler_failed(exc: BaseException, file: Path, *, debug: bool) -> Response:
    payload: dict[str, Any] = {"error": {"code": 500, "message": str(exc) or "Internal Server Error"}}
    if debug:
        payload["file"] = str(file)
        payload["stack"] = "".join(traceback.format_exception(exc))
    return Response.json(payload, status=500)
